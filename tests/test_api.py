"""
Tests for the database status HTTP routes.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from connectors.encryption import CredentialCipher, SymmetricKey
from connectors.mongodb import MongoDBConnector
from connectors.registry import ConnectorRegistry
from connectors.resilientdb import ResilientDBConnector
from core.config_store import InMemoryConfigStore
from main import create_app

RESDB_PAYLOAD = [
    {"replicaNum": 4, "workerNum": 8, "transactionNum": 120, "blockNum": 30, "chainAge": "1d"}
]


def _mongo_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"collectionExists": True})


@pytest.fixture
def store():
    return InMemoryConfigStore()


@pytest.fixture
def client(store):
    registry = ConnectorRegistry(
        [
            ResilientDBConnector(
                base_url="https://resdb.test",
                transport=httpx.MockTransport(lambda request: httpx.Response(200, json=RESDB_PAYLOAD)),
            ),
            MongoDBConnector(
                proxy_url="https://proxy.test/mongo",
                cipher=CredentialCipher(SymmetricKey(b"0123456789abcdef0123456789abcdef")),
                transport=httpx.MockTransport(_mongo_handler),
            ),
        ]
    )
    return TestClient(create_app(registry=registry, store=store))


class TestDatabaseRoutes:
    def test_list_providers(self, client):
        resp = client.get("/api/v1/databases")
        assert resp.status_code == 200
        assert {p["type"]: p["configured"] for p in resp.json()} == {
            "resilientdb": True,
            "mongodb": True,
        }

    def test_status_before_first_check(self, client):
        resp = client.get("/api/v1/databases/resilientdb/status")
        assert resp.status_code == 200
        assert resp.json()["state"] == "checking"
        assert resp.headers["X-Process-Time"]

    def test_check_resilientdb(self, client):
        resp = client.post("/api/v1/databases/resilientdb/check")
        body = resp.json()
        assert resp.status_code == 200
        assert body["state"] == "connected"
        assert body["details"]["Chain Age"] == "1d"
        assert body["checked_at"] is not None

        assert client.get("/api/v1/databases/resilientdb/status").json()["state"] == "connected"

    def test_unknown_database_is_rejected(self, client):
        resp = client.get("/api/v1/databases/postgres/status")
        assert resp.status_code == 422

    def test_reconfigure_mongodb(self, client, store):
        resp = client.put(
            "/api/v1/databases/mongodb/config",
            json={"uri": "mongodb://u:p@h/db", "database": "d", "collection": "c"},
        )
        body = resp.json()
        assert resp.status_code == 200
        assert body["state"] == "connected"
        assert body["config_version"] == 1
        assert body["details"] == {"Database": "d", "Collection": "c", "Collection Exists": "Yes"}
        assert store.load("mongodbConfig")["database"] == "d"

        view = client.get("/api/v1/databases/mongodb/config").json()
        assert view == {"database": "d", "collection": "c", "uri": "mongodb://***@h/db"}

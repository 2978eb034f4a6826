"""
Tests for the verification controller state machine.
"""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from connectors.base import BaseConnector
from connectors.registry import ConnectorRegistry
from connectors.resilientdb import ResilientDBConnector
from core.config_store import InMemoryConfigStore
from core.verification import VerificationController, check_connection
from utils.schemas import (
    ConnectionState,
    DatabaseType,
    MongoConfig,
    ProbeOutcome,
    RawProbeResult,
)

FIXED_NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


class _GatedConnector(BaseConnector):
    """Each probe waits on a per-database gate, then answers as scripted."""

    def __init__(self):
        super().__init__(timeout=5)
        self.gates = {}
        self.results = {}
        self.seen = []

    @property
    def db_type(self):
        return DatabaseType.MONGODB

    @property
    def display_name(self):
        return "Gated"

    async def probe(self, config=None) -> RawProbeResult:
        self.seen.append(config)
        await self.gates[config.database].wait()
        exists = self.results[config.database]
        if exists is None:
            raise httpx.ConnectError("refused")
        return RawProbeResult(
            payload={"collectionExists": exists},
            config={"database": config.database, "collection": config.collection},
        )


def _mock_connector(outcome: ProbeOutcome) -> MagicMock:
    connector = MagicMock(spec=BaseConnector)
    connector.db_type = DatabaseType.RESILIENTDB
    connector.display_name = "ResilientDB"
    connector.check = AsyncMock(return_value=outcome)
    return connector


class TestStateMachine:
    def test_initial_state_is_checking(self):
        controller = VerificationController(_mock_connector(ProbeOutcome()))
        assert controller.status.state == ConnectionState.CHECKING
        assert controller.status.checked_at is None
        assert controller.config_version == 0

    @pytest.mark.asyncio
    async def test_connected_outcome(self):
        connector = _mock_connector(ProbeOutcome(connected=True, details={"Replica Number": "4"}))
        controller = VerificationController(connector, clock=lambda: FIXED_NOW)

        status = await controller.start()

        assert status.state == ConnectionState.CONNECTED
        assert status.connected is True
        assert status.details == {"Replica Number": "4"}
        assert status.checked_at == FIXED_NOW
        connector.check.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_disconnected_outcome_still_stamps_time(self):
        controller = VerificationController(
            _mock_connector(ProbeOutcome(connected=False)), clock=lambda: FIXED_NOW
        )
        status = await controller.start()
        assert status.state == ConnectionState.DISCONNECTED
        assert status.details == {}
        assert status.checked_at == FIXED_NOW

    @pytest.mark.asyncio
    async def test_start_enters_checking_before_probe_resolves(self):
        connector = _GatedConnector()
        connector.gates["d"] = asyncio.Event()
        connector.results["d"] = True
        controller = VerificationController(
            connector, initial_config=MongoConfig(uri="mongodb://h", database="d", collection="c")
        )

        task = asyncio.create_task(controller.start())
        await asyncio.sleep(0)
        assert controller.status.state == ConnectionState.CHECKING

        connector.gates["d"].set()
        status = await task
        assert status.state == ConnectionState.CONNECTED

    @pytest.mark.asyncio
    async def test_status_is_a_read_only_copy(self):
        controller = VerificationController(
            _mock_connector(ProbeOutcome(connected=True, details={"a": "1"}))
        )
        await controller.start()
        controller.status.details["a"] = "tampered"
        assert controller.status.details == {"a": "1"}


class TestSupersession:
    @pytest.mark.asyncio
    async def test_stale_slow_result_is_discarded(self):
        connector = _GatedConnector()
        connector.gates = {"a": asyncio.Event(), "b": asyncio.Event()}
        connector.results = {"a": None, "b": True}
        controller = VerificationController(connector)

        task_a = asyncio.create_task(
            controller.start(MongoConfig(uri="mongodb://a", database="a", collection="c"))
        )
        await asyncio.sleep(0)
        task_b = asyncio.create_task(
            controller.reconfigure(MongoConfig(uri="mongodb://b", database="b", collection="c"))
        )
        await asyncio.sleep(0)

        connector.gates["b"].set()
        status_b = await task_b
        assert status_b.state == ConnectionState.CONNECTED
        assert status_b.config_version == 1

        connector.gates["a"].set()
        await task_a

        final = controller.status
        assert final.state == ConnectionState.CONNECTED
        assert final.details["Database"] == "b"
        assert final.config_version == 1

    @pytest.mark.asyncio
    async def test_latest_manual_refresh_wins_at_same_version(self):
        connector = _GatedConnector()
        connector.gates = {"a": asyncio.Event()}
        connector.results = {"a": True}
        controller = VerificationController(
            connector, initial_config=MongoConfig(uri="mongodb://a", database="a", collection="c")
        )

        first = asyncio.create_task(controller.start())
        await asyncio.sleep(0)
        second = asyncio.create_task(controller.start())
        await asyncio.sleep(0)
        connector.gates["a"].set()
        await asyncio.gather(first, second)

        assert controller.status.state == ConnectionState.CONNECTED
        assert len(connector.seen) == 2


class TestReconfigure:
    @pytest.mark.asyncio
    async def test_persists_bumps_version_and_checks_once(self):
        store = InMemoryConfigStore()
        connector = _mock_connector(ProbeOutcome(connected=True))
        connector.db_type = DatabaseType.MONGODB
        controller = VerificationController(connector, store=store)
        new_config = MongoConfig(uri="mongodb://u:p@h/db", database="d", collection="c")

        status = await controller.reconfigure(new_config)
        await controller.reconfigure(new_config)

        assert controller.config_version == 2
        assert status.config_version == 1
        assert store.load("mongodbConfig") == new_config.model_dump()
        assert connector.check.await_count == 2
        connector.check.assert_awaited_with(new_config)

    def test_initial_config_comes_from_store(self):
        store = InMemoryConfigStore()
        store.save("mongodbConfig", {"uri": "mongodb://h", "database": "d", "collection": "c"})
        connector = _mock_connector(ProbeOutcome())
        connector.db_type = DatabaseType.MONGODB

        controller = VerificationController(connector, store=store)

        assert controller.config == MongoConfig(uri="mongodb://h", database="d", collection="c")

    def test_malformed_saved_config_is_ignored(self):
        store = InMemoryConfigStore()
        store.save("mongodbConfig", {"database": ["not", "a", "string"]})
        connector = _mock_connector(ProbeOutcome())
        connector.db_type = DatabaseType.MONGODB

        controller = VerificationController(connector, store=store)

        assert controller.config == MongoConfig()


class TestCheckConnection:
    @pytest.mark.asyncio
    async def test_one_shot_probe(self):
        payload = [{"replicaNum": 4, "workerNum": 8, "transactionNum": 120, "blockNum": 30, "chainAge": "1d"}]
        registry = ConnectorRegistry(
            [
                ResilientDBConnector(
                    base_url="https://resdb.test",
                    transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload)),
                )
            ]
        )
        status = await check_connection(DatabaseType.RESILIENTDB, registry=registry)
        assert status.state == ConnectionState.CONNECTED
        assert len(status.details) == 5
        assert status.checked_at is not None

    @pytest.mark.asyncio
    async def test_unknown_backend_raises(self):
        with pytest.raises(ValueError):
            await check_connection(DatabaseType.MONGODB, registry=ConnectorRegistry([]))

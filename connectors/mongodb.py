"""
MongoDBConnector — asks the verification proxy whether a collection exists.

The connection string is sealed with the credential cipher before the
request is built; the proxy holds the matching key and the real driver.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

import httpx

from config.settings import config
from connectors.base import BaseConnector
from connectors.encryption import CredentialCipher, get_default_cipher
from connectors.errors import ConnectorTransportError
from utils.schemas import DatabaseType, MongoConfig, MongoProbeRequest, RawProbeResult

logger = logging.getLogger(__name__)


def mask_credentials(uri: str) -> str:
    """
    Replace the userinfo part of a connection string with ``***``.

    ``mongodb://u:p@host/db`` → ``mongodb://***@host/db``.  Strings that do
    not parse as URLs are masked entirely.
    """
    if not uri:
        return ""
    try:
        parts = urlsplit(uri)
    except ValueError:
        return "***"
    if not parts.scheme or not parts.netloc:
        return "***"
    if "@" not in parts.netloc:
        return uri
    host = parts.netloc.rsplit("@", 1)[1]
    return urlunsplit((parts.scheme, f"***@{host}", parts.path, parts.query, parts.fragment))


class MongoDBConnector(BaseConnector):
    """Connectivity probe for MongoDB via the verification proxy."""

    def __init__(
        self,
        proxy_url: Optional[str] = None,
        cipher: Optional[CredentialCipher] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.proxy_url = (proxy_url if proxy_url is not None else config.mongodb_proxy_url).strip()
        self._cipher = cipher

    @property
    def db_type(self) -> DatabaseType:
        return DatabaseType.MONGODB

    @property
    def display_name(self) -> str:
        return "MongoDB"

    def is_configured(self) -> bool:
        return bool(self.proxy_url)

    @property
    def cipher(self) -> CredentialCipher:
        return self._cipher or get_default_cipher()

    def build_request(self, mongo_config: MongoConfig) -> MongoProbeRequest:
        """Seal the URI and assemble the proxy payload."""
        envelope = self.cipher.encrypt(mongo_config.uri)
        return MongoProbeRequest(
            mongoDbName=mongo_config.database,
            mongoCollectionName=mongo_config.collection,
            mongoUri=mongo_config.uri,
            uri=envelope.ciphertext,
            iv=envelope.nonce,
        )

    async def probe(self, config: Optional[MongoConfig] = None) -> RawProbeResult:
        """POST the sealed config to the proxy and hand back its JSON object."""
        mongo_config = config or MongoConfig()
        if not self.is_configured():
            raise ConnectorTransportError("MONGODB_PROXY_URL is not configured")

        body = self.build_request(mongo_config).model_dump(by_alias=True)
        logger.debug(
            "Probing MongoDB %s (db=%s, collection=%s)",
            mask_credentials(mongo_config.uri),
            mongo_config.database,
            mongo_config.collection,
        )

        try:
            async with self._client() as client:
                resp = await client.post(self.proxy_url, json=body)
        except httpx.HTTPError as exc:
            raise ConnectorTransportError(
                f"MongoDB proxy unreachable: {type(exc).__name__}"
            ) from exc

        data = self._json(resp)
        if not isinstance(data, dict):
            raise ConnectorTransportError(
                "MongoDB proxy returned a non-object body", status_code=resp.status_code
            )
        return RawProbeResult(
            status_code=resp.status_code,
            payload=data,
            config={
                "database": mongo_config.database,
                "collection": mongo_config.collection,
            },
        )

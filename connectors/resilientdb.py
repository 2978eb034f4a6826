"""
ResilientDBConnector — reads chain statistics from the ResilientDB proxy.

The proxy's ``/populatetable`` endpoint returns a JSON array whose first
element carries replica, worker, transaction and block counts plus chain age.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from config.settings import config
from connectors.base import BaseConnector
from connectors.errors import ConnectorTransportError
from utils.schemas import DatabaseType, RawProbeResult, ResilientDBConfig

logger = logging.getLogger(__name__)

_STATS_PATH = "/populatetable"


def resolve_origin(base_url: str) -> str:
    """Normalise the configured proxy URL to the stats endpoint."""
    base = base_url.strip().rstrip("/")
    if base.endswith(_STATS_PATH):
        base = base[: -len(_STATS_PATH)]
    return f"{base}{_STATS_PATH}"


class ResilientDBConnector(BaseConnector):
    """Connectivity probe for ResilientDB."""

    def __init__(self, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.origin = resolve_origin(base_url or config.resdb_proxy_url)

    @property
    def db_type(self) -> DatabaseType:
        return DatabaseType.RESILIENTDB

    @property
    def display_name(self) -> str:
        return "ResilientDB"

    async def probe(self, config: Optional[ResilientDBConfig] = None) -> RawProbeResult:
        """GET the stats endpoint and hand back the parsed array."""
        logger.debug("Probing ResilientDB at %s", self.origin)
        try:
            async with self._client() as client:
                resp = await client.get(self.origin, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            raise ConnectorTransportError(
                f"ResilientDB unreachable: {type(exc).__name__}"
            ) from exc

        return RawProbeResult(status_code=resp.status_code, payload=self._json(resp))

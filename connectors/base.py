"""
BaseConnector — abstract interface for all connectivity probes.

Every backend (ResilientDB, MongoDB, …) subclasses this and implements
``probe``.  Callers use ``check``, which bounds the probe in time and never
raises.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from config.settings import config
from connectors.errors import ConnectivityError, ConnectorTransportError
from core.normalizer import normalize
from utils.schemas import DatabaseType, ProbeOutcome, RawProbeResult

logger = logging.getLogger(__name__)


class BaseConnector(ABC):
    """Abstract base for all backend connectors."""

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout if timeout is not None else config.probe_timeout_seconds
        self._transport = transport

    # ── Identity ────────────────────────────────────────────────────────
    @property
    @abstractmethod
    def db_type(self) -> DatabaseType:
        """Backend selector: DatabaseType.RESILIENTDB, DatabaseType.MONGODB."""
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable: 'ResilientDB', 'MongoDB'."""
        ...

    # ── Probe ───────────────────────────────────────────────────────────

    @abstractmethod
    async def probe(self, config: Any) -> RawProbeResult:
        """
        Perform one connectivity request.

        Parameters
        ----------
        config : ResilientDBConfig | MongoConfig
            The variant's own config shape.

        Returns
        -------
        RawProbeResult carrying the backend's success payload.

        Raises
        ------
        ConnectorTransportError, EncryptionError
        """
        ...

    async def check(self, config: Any = None) -> ProbeOutcome:
        """
        Probe once and normalize the result.

        Transport, encryption and timeout failures, and anything else the
        probe raises, become a disconnected outcome.
        """
        try:
            raw = await asyncio.wait_for(self.probe(config), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("%s probe timed out after %.1fs", self.display_name, self.timeout)
            raw = ConnectorTransportError("probe timed out")
        except ConnectivityError as exc:
            logger.warning("%s probe failed: %s", self.display_name, exc)
            raw = exc
        except Exception as exc:
            logger.error("%s probe crashed", self.display_name, exc_info=True)
            raw = exc
        return normalize(self.db_type, raw)

    # ── Helpers ─────────────────────────────────────────────────────────

    def is_configured(self) -> bool:
        """Return True if this connector has every setting it needs."""
        return True

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        """Raise ConnectorTransportError for non-2xx or non-JSON responses."""
        if not response.is_success:
            raise ConnectorTransportError(
                f"HTTP {response.status_code}", status_code=response.status_code
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectorTransportError(
                "response body is not JSON", status_code=response.status_code
            ) from exc

"""
Verification controller

Per-connector state machine: ``checking`` → ``connected`` | ``disconnected``.
Every ``start`` re-enters ``checking``; only the most recent check may write
the terminal status, so a slow stale probe can never overwrite a newer one.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Type

from pydantic import BaseModel

from connectors.base import BaseConnector
from connectors.registry import ConnectorRegistry
from core.config_store import ConfigStore
from utils.schemas import (
    ConnectionState,
    ConnectionStatus,
    DatabaseType,
    MongoConfig,
    ResilientDBConfig,
)

logger = logging.getLogger(__name__)

CONFIG_MODELS: Dict[DatabaseType, Type[BaseModel]] = {
    DatabaseType.RESILIENTDB: ResilientDBConfig,
    DatabaseType.MONGODB: MongoConfig,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_config(db_type: DatabaseType) -> BaseModel:
    return CONFIG_MODELS[db_type]()


class VerificationController:
    """Owns the ``ConnectionStatus`` of one connector."""

    def __init__(
        self,
        connector: BaseConnector,
        *,
        store: Optional[ConfigStore] = None,
        store_key: Optional[str] = None,
        initial_config: Optional[BaseModel] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._connector = connector
        self._store = store
        self._store_key = store_key or f"{connector.db_type.value}Config"
        self._clock = clock
        self._config_version = 0
        self._ticket = 0
        self._config = initial_config if initial_config is not None else self._load_config()
        self._status = ConnectionStatus(config_version=self._config_version)

    def _load_config(self) -> BaseModel:
        model = CONFIG_MODELS[self.db_type]
        if self._store is None:
            return model()
        saved = self._store.load(self._store_key)
        if not saved:
            return model()
        try:
            return model(**saved)
        except (TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed saved %s config: %s", self.db_type.value, exc)
            return model()

    # ── Read-only views ─────────────────────────────────────────────────

    @property
    def db_type(self) -> DatabaseType:
        return self._connector.db_type

    @property
    def display_name(self) -> str:
        return self._connector.display_name

    @property
    def status(self) -> ConnectionStatus:
        return self._status.model_copy(deep=True)

    @property
    def config(self) -> BaseModel:
        return self._config

    @property
    def config_version(self) -> int:
        return self._config_version

    # ── Transitions ─────────────────────────────────────────────────────

    async def start(self, config: Optional[BaseModel] = None) -> ConnectionStatus:
        """
        Run one check and return the status it leaves behind.

        If a later ``start`` begins before this probe resolves, this probe's
        outcome is discarded and the returned status is whatever is current.
        """
        if config is not None:
            self._config = config
        probe_config = self._config

        self._ticket += 1
        ticket = self._ticket
        version = self._config_version
        self._status = ConnectionStatus(
            state=ConnectionState.CHECKING,
            checked_at=self._status.checked_at,
            config_version=version,
        )

        outcome = await self._connector.check(probe_config)

        if ticket != self._ticket:
            logger.debug(
                "Discarding superseded %s check (config v%d, ticket %d < %d)",
                self.db_type.value,
                version,
                ticket,
                self._ticket,
            )
            return self.status

        self._status = ConnectionStatus(
            state=ConnectionState.CONNECTED if outcome.connected else ConnectionState.DISCONNECTED,
            details=outcome.details,
            checked_at=self._clock(),
            config_version=version,
        )
        logger.info(
            "%s check complete: %s (config v%d)",
            self.display_name,
            self._status.state.value,
            version,
        )
        return self.status

    async def reconfigure(self, new_config: BaseModel) -> ConnectionStatus:
        """Persist ``new_config``, bump the config version and check once."""
        if self._store is not None:
            try:
                self._store.save(self._store_key, new_config.model_dump())
            except OSError as exc:
                logger.error("Could not persist %s config: %s", self.db_type.value, exc)
        self._config_version += 1
        return await self.start(new_config)


async def check_connection(
    db_type: DatabaseType,
    config: Any = None,
    *,
    registry: Optional[ConnectorRegistry] = None,
) -> ConnectionStatus:
    """One-shot probe of a backend, returning a terminal status."""
    registry = registry or ConnectorRegistry()
    connector = registry.get(db_type)
    if connector is None:
        raise ValueError(f"No connector registered for '{db_type}'")
    outcome = await connector.check(config if config is not None else default_config(connector.db_type))
    return ConnectionStatus(
        state=ConnectionState.CONNECTED if outcome.connected else ConnectionState.DISCONNECTED,
        details=outcome.details,
        checked_at=_utcnow(),
    )

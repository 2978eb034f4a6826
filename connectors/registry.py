"""
ConnectorRegistry — discovers and provides access to all connectors.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from connectors.base import BaseConnector
from connectors.mongodb import MongoDBConnector
from connectors.resilientdb import ResilientDBConnector
from utils.schemas import DatabaseType, ProviderInfo

logger = logging.getLogger(__name__)


def default_connectors() -> List[BaseConnector]:
    """All known connectors, built from settings. Add new ones here."""
    return [
        ResilientDBConnector(),
        MongoDBConnector(),
    ]


class ConnectorRegistry:
    """Registry of connectors keyed by ``DatabaseType``."""

    def __init__(self, connectors: Optional[Iterable[BaseConnector]] = None) -> None:
        self._connectors: Dict[DatabaseType, BaseConnector] = {}
        for conn in connectors if connectors is not None else default_connectors():
            self.register(conn)

    def register(self, connector: BaseConnector) -> None:
        """Add a connector, replacing any existing one for the same backend."""
        self._connectors[connector.db_type] = connector

    def discover(self) -> None:
        """Log which connectors are ready to probe."""
        for conn in self._connectors.values():
            if conn.is_configured():
                logger.info(
                    "Connector registered: %s (%s)",
                    conn.display_name,
                    conn.db_type.value,
                )
            else:
                logger.warning(
                    "Connector %s registered but not configured — probes will report disconnected",
                    conn.db_type.value,
                )

    def get(self, db_type: DatabaseType) -> Optional[BaseConnector]:
        """Get a connector by backend type."""
        try:
            return self._connectors.get(DatabaseType(db_type))
        except ValueError:
            return None

    def list_providers(self) -> List[ProviderInfo]:
        """Return info about all registered connectors."""
        return [
            ProviderInfo(
                type=c.db_type,
                display_name=c.display_name,
                configured=c.is_configured(),
            )
            for c in self._connectors.values()
        ]

"""
Pydantic schemas shared by the connectors, controller and API.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class DatabaseType(str, Enum):
    RESILIENTDB = "resilientdb"
    MONGODB = "mongodb"


class ConnectionState(str, Enum):
    CHECKING = "checking"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


# ── Credentials ─────────────────────────────────────────────────────────


class SecureEnvelope(BaseModel):
    """Ciphertext (tag appended) and nonce, both base64 text."""

    model_config = ConfigDict(frozen=True)

    ciphertext: str
    nonce: str


# ── Connector configs ──────────────────────────────────────────────────


class ResilientDBConfig(BaseModel):
    """ResilientDB is identified by its endpoint alone."""

    model_config = ConfigDict(frozen=True)


class MongoConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: str = Field(default="", repr=False)
    database: str = ""
    collection: str = ""


# ── Probe results ──────────────────────────────────────────────────────


class RawProbeResult(BaseModel):
    """
    Successful transport response as a connector received it.

    ``payload`` keeps the backend's own shape; ``config`` carries the
    non-secret config fields the normalizer needs for labels.
    """

    status_code: int = 200
    payload: Any = None
    config: Dict[str, str] = Field(default_factory=dict)


class ProbeOutcome(BaseModel):
    connected: bool = False
    details: Dict[str, str] = Field(default_factory=dict)


class ConnectionStatus(BaseModel):
    state: ConnectionState = ConnectionState.CHECKING
    details: Dict[str, str] = Field(default_factory=dict)
    checked_at: Optional[datetime] = None
    config_version: int = 0

    @property
    def connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED


# ── Mongo proxy wire format ────────────────────────────────────────────


class MongoProbeRequest(BaseModel):
    """Body POSTed to the MongoDB verification proxy."""

    model_config = ConfigDict(populate_by_name=True)

    database: str = Field(alias="mongoDbName")
    collection: str = Field(alias="mongoCollectionName")
    mongo_uri: str = Field(alias="mongoUri", repr=False)
    encrypted_uri: str = Field(alias="uri")
    iv: str


# ── API bodies ─────────────────────────────────────────────────────────


class ProviderInfo(BaseModel):
    type: DatabaseType
    display_name: str
    configured: bool


class MongoConfigView(BaseModel):
    """Mongo config as returned to the UI; the URI is masked."""

    database: str
    collection: str
    uri: str

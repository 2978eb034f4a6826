"""
Connector config storage

The controller hands configs to a ``ConfigStore`` on reconfigure and never
reads storage directly otherwise.  The JSON file store seals any ``uri``
field in a ``SecureEnvelope`` so credentials are not written to disk in
plaintext.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from connectors.encryption import CredentialCipher
from connectors.errors import DecryptionError
from utils.schemas import SecureEnvelope

logger = logging.getLogger(__name__)

_SECRET_FIELD = "uri"


class ConfigStore(ABC):
    @abstractmethod
    def load(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def save(self, key: str, value: Dict[str, Any]) -> None:
        ...


class InMemoryConfigStore(ConfigStore):
    def __init__(self):
        self._data: Dict[str, Dict[str, Any]] = {}

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(key)
        return dict(value) if value is not None else None

    def save(self, key: str, value: Dict[str, Any]) -> None:
        self._data[key] = dict(value)


class EncryptedJsonConfigStore(ConfigStore):
    """One JSON document holding every saved config, secrets sealed."""

    def __init__(self, path: str | os.PathLike, cipher: CredentialCipher):
        self.path = Path(path)
        self._cipher = cipher

    def _read_all(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error("Could not read config store %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        stored = self._read_all().get(key)
        if not isinstance(stored, dict):
            return None
        value = dict(stored)
        sealed = value.get(_SECRET_FIELD)
        if isinstance(sealed, dict):
            try:
                value[_SECRET_FIELD] = self._cipher.decrypt(SecureEnvelope(**sealed))
            except (DecryptionError, TypeError, ValueError):
                logger.warning(
                    "Stored config %r could not be decrypted; it must be re-entered", key
                )
                return None
        return value

    def save(self, key: str, value: Dict[str, Any]) -> None:
        record = dict(value)
        if isinstance(record.get(_SECRET_FIELD), str):
            record[_SECRET_FIELD] = self._cipher.encrypt(record[_SECRET_FIELD]).model_dump()

        data = self._read_all()
        data[key] = record
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so a crash never leaves a half-written file
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".configstore-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.info("Saved %s config to %s", key, self.path)

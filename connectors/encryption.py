"""
Credential encryption — seal connection strings before they leave the process.

Uses AES-256-GCM from the ``cryptography`` library: a fresh 96-bit nonce per
message and a 128-bit authentication tag appended to the ciphertext.  The key
is loaded from ``config.encryption_key`` (env var: ``ENCRYPTION_KEY``) and is
either a 32-character string, the form the verification proxy shares, or
base64 of 32 random bytes.  Generate one with::

    python -c "import base64, os; print(base64.b64encode(os.urandom(32)).decode())"

There is no plaintext fallback: with no key configured
every encrypt call fails with ``EncryptionError``.
"""

from __future__ import annotations

import base64
import binascii
import functools
import hmac
import logging
import os
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from config.settings import config
from connectors.errors import DecryptionError, EncryptionError
from utils.codec import decode_text, encode_bytes
from utils.schemas import SecureEnvelope

logger = logging.getLogger(__name__)

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16


class SymmetricKey:
    """Immutable key material; never printed."""

    __slots__ = ("_material",)

    def __init__(self, material: bytes) -> None:
        if not isinstance(material, (bytes, bytearray)) or len(material) != KEY_SIZE:
            raise EncryptionError(f"Encryption key must be exactly {KEY_SIZE} bytes")
        object.__setattr__(self, "_material", bytes(material))

    def __setattr__(self, name, value):
        raise AttributeError("SymmetricKey is immutable")

    def __repr__(self) -> str:
        return "SymmetricKey(<redacted>)"

    __str__ = __repr__

    def __eq__(self, other) -> bool:
        return isinstance(other, SymmetricKey) and hmac.compare_digest(other._material, self._material)

    def __reduce__(self):
        raise TypeError("SymmetricKey cannot be serialized")

    @property
    def material(self) -> bytes:
        return self._material


def load_symmetric_key(raw: Union[str, bytes, None]) -> SymmetricKey:
    """
    Parse a configured key value.

    Accepts raw 32-byte keys, 32-character strings, and standard or urlsafe
    base64 that decodes to 32 bytes.
    """
    if not raw:
        raise EncryptionError("Encryption key is not configured")

    if isinstance(raw, (bytes, bytearray)):
        return SymmetricKey(bytes(raw))

    as_utf8 = raw.encode("utf-8")
    if len(as_utf8) == KEY_SIZE:
        return SymmetricKey(as_utf8)

    stripped = raw.strip()
    for decode in (_standard_b64decode, _urlsafe_b64decode):
        try:
            decoded = decode(stripped)
        except (binascii.Error, ValueError):
            continue
        if len(decoded) == KEY_SIZE:
            return SymmetricKey(decoded)

    raise EncryptionError(
        f"Encryption key must be {KEY_SIZE} characters or base64 of {KEY_SIZE} bytes"
    )


def _standard_b64decode(text: str) -> bytes:
    return base64.b64decode(text, validate=True)


def _urlsafe_b64decode(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


class CredentialCipher:
    """AES-256-GCM envelope sealing over one process-wide key."""

    def __init__(self, key: SymmetricKey) -> None:
        if not isinstance(key, SymmetricKey):
            raise EncryptionError("CredentialCipher requires a SymmetricKey")
        self._aead = AESGCM(key.material)

    def encrypt(self, plaintext: str) -> SecureEnvelope:
        """
        Seal ``plaintext`` in a new envelope.

        Two calls on the same input never share a nonce, so their envelopes differ.
        """
        if not isinstance(plaintext, str):
            raise EncryptionError("Plaintext must be a string")
        nonce = os.urandom(NONCE_SIZE)
        try:
            sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        except (ValueError, OverflowError, UnicodeEncodeError) as exc:
            logger.error("Encryption failed: %s", type(exc).__name__)
            raise EncryptionError("Failed to encrypt data") from exc
        return SecureEnvelope(ciphertext=encode_bytes(sealed), nonce=encode_bytes(nonce))

    def decrypt(self, envelope: SecureEnvelope) -> str:
        """
        Open an envelope, verifying its tag first.

        Every failure raises the same ``DecryptionError``; the cause is only
        logged at debug level.
        """
        try:
            nonce = decode_text(envelope.nonce)
            sealed = decode_text(envelope.ciphertext)
            if len(nonce) != NONCE_SIZE or len(sealed) < TAG_SIZE:
                raise ValueError("truncated envelope")
            return self._aead.decrypt(nonce, sealed, None).decode("utf-8")
        except (InvalidTag, ValueError, AttributeError, TypeError) as exc:
            logger.debug("Decryption rejected envelope (%s)", type(exc).__name__)
            raise DecryptionError() from None


@functools.lru_cache(maxsize=1)
def get_default_cipher() -> CredentialCipher:
    """
    Build the process-wide cipher from settings, once.

    A missing or malformed key raises ``EncryptionError`` every time this is
    called; failures are not cached.
    """
    if not config.encryption_key:
        logger.warning(
            "ENCRYPTION_KEY not set — MongoDB connection strings cannot be sent. "
            "Generate a key: python -c \"import base64, os; "
            "print(base64.b64encode(os.urandom(32)).decode())\""
        )
    cipher = CredentialCipher(load_symmetric_key(config.encryption_key))
    logger.info("Credential encryption enabled (AES-256-GCM)")
    return cipher


def encrypt_secret(plaintext: str) -> SecureEnvelope:
    """Encrypt with the process-wide cipher."""
    return get_default_cipher().encrypt(plaintext)


def decrypt_secret(envelope: SecureEnvelope) -> str:
    """Decrypt with the process-wide cipher."""
    return get_default_cipher().decrypt(envelope)

"""
Error taxonomy for credential handling and connectivity probes.
"""

from __future__ import annotations


class ConnectivityError(Exception):
    """Base for every error raised by this package."""


class EncryptionError(ConnectivityError):
    """The key is missing or invalid, or the cipher rejected the input."""


class DecryptionError(ConnectivityError):
    """
    Envelope could not be opened.

    Raised with the same message for a wrong key, a tampered ciphertext or
    nonce, and malformed encoding.
    """

    def __init__(self) -> None:
        super().__init__("Failed to decrypt data")


class ConnectorTransportError(ConnectivityError):
    """Network failure, non-success HTTP status or unexpected payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

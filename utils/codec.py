"""
Binary ↔ text codec for moving ciphertext and nonces through JSON.

Standard base64 alphabet with padding, the same form browsers produce
with ``btoa`` so envelopes stay readable by the verification proxy.
"""

from __future__ import annotations

import base64


def encode_bytes(data: bytes) -> str:
    """Encode raw bytes as an ASCII base64 string."""
    return base64.b64encode(data).decode("ascii")


def decode_text(text: str) -> bytes:
    """
    Decode a base64 string back to bytes.

    Only the canonical encoding is accepted: characters outside the alphabet,
    bad padding, and non-zero unused trailing bits all raise ``ValueError``,
    so each byte string has exactly one accepted text form.
    """
    if not isinstance(text, str):
        raise ValueError("base64 input must be a string")
    try:
        decoded = base64.b64decode(text.encode("ascii"), validate=True)
    except UnicodeEncodeError as exc:
        raise ValueError("base64 input contains non-ASCII characters") from exc
    if encode_bytes(decoded) != text:
        raise ValueError("base64 input is not canonically encoded")
    return decoded

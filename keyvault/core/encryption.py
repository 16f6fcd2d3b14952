"""Secret codec for stored API key values.

``fernet`` is authenticated encryption with the server-held FERNET_KEY.
``base64`` is the legacy reversible transform kept for stores migrated from
the old client; it offers no confidentiality.

Decoding never raises: a token that cannot be decoded is returned unchanged.
Never log plaintext or token values.
"""

import base64
import binascii
import logging

from cryptography.fernet import Fernet, InvalidToken

from keyvault.core.config import settings

logger = logging.getLogger(__name__)

_fernet: Fernet | None = None


def _get_fernet() -> Fernet:
    global _fernet
    if _fernet is None:
        key = settings.fernet_key
        if not key:
            raise ValueError("FERNET_KEY is not configured — cannot encrypt/decrypt secrets")
        _fernet = Fernet(key.encode() if isinstance(key, str) else key)
    return _fernet


def reset_codec() -> None:
    """Drop the cached Fernet instance (after FERNET_KEY changes)."""
    global _fernet
    _fernet = None


def encode_secret(plaintext: str) -> str:
    """Encode a plaintext secret into a storable token."""
    raw = plaintext.encode("utf-8")
    if settings.secret_codec == "base64":
        return base64.b64encode(raw).decode("ascii")
    return _get_fernet().encrypt(raw).decode("ascii")


def decode_secret(token: str) -> str:
    """Decode a stored token. Returns the token unchanged if it cannot be decoded."""
    if not token:
        return token
    if settings.secret_codec == "base64":
        return _decode_base64(token)
    try:
        fernet = _get_fernet()
    except ValueError:
        logger.error("FERNET_KEY is missing or malformed — cannot decrypt secrets, returning as stored")
        return token
    try:
        return fernet.decrypt(token.encode("ascii")).decode("utf-8")
    except (InvalidToken, UnicodeError):
        logger.warning("Failed to decrypt secret — invalid Fernet key or non-encrypted value, returning as stored")
        return token


def _decode_base64(token: str) -> str:
    try:
        return base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        logger.warning("Failed to decode base64 secret — returning as stored")
        return token

"""Opaque token generation.

Every credential in the system (session ids, guide access and refresh tokens,
device signatures) is a random string with no decodable structure. Tokens come
from the operating system CSPRNG. If the platform has no strong randomness
source, a degraded token is produced instead; degraded tokens always start with
``FALLBACK_PREFIX`` so they can be told apart in logs and audits.
"""

import random
import secrets
import time
import uuid

import structlog

logger = structlog.get_logger(__name__)

FALLBACK_PREFIX = "fallback-"
DEFAULT_TOKEN_BYTES = 32
SIGNATURE_PREFIX = "sig"
SIGNATURE_BYTES = 12
MAX_DEVICE_KEY_LENGTH = 200


def _secure_bytes(byte_length: int) -> bytes | None:
    try:
        return secrets.token_bytes(byte_length)
    except NotImplementedError:
        # os.urandom raises this when no randomness source exists
        logger.warning("secure_random_unavailable", byte_length=byte_length)
        return None


def _fallback_token(byte_length: int) -> str:
    stamp = format(time.time_ns() // 1_000_000, "x")
    noise = format(random.getrandbits(byte_length * 8), f"0{byte_length * 2}x")
    return f"{FALLBACK_PREFIX}{stamp}-{noise}"


def is_fallback_token(token: str) -> bool:
    return token.startswith(FALLBACK_PREFIX)


def new_token(byte_length: int = DEFAULT_TOKEN_BYTES) -> str:
    """Return a random lowercase hex token of exactly ``2 * byte_length`` characters."""
    if byte_length < 1:
        raise ValueError("byte_length must be positive")
    data = _secure_bytes(byte_length)
    if data is None:
        return _fallback_token(byte_length)
    return data.hex()


def new_session_id() -> str:
    """Return a UUID-formatted session id carrying 128 random bits."""
    data = _secure_bytes(16)
    if data is None:
        return _fallback_token(16)
    return str(uuid.UUID(bytes=data))


def generate_signature(prefix: str = SIGNATURE_PREFIX, byte_length: int = SIGNATURE_BYTES) -> str:
    """Return a device signature such as ``sig_4f7a3b2c9d8e7f1a2b3c4d5e``."""
    return f"{prefix}_{new_token(byte_length)}"


def sanitize_device_key(value: object) -> str | None:
    """Normalize a client-supplied device key, returning None when it is unusable."""
    if not value or not isinstance(value, str):
        return None
    key = value.strip()
    if not key or len(key) > MAX_DEVICE_KEY_LENGTH:
        return None
    return key

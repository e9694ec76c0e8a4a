from enum import StrEnum

from pydantic_settings import BaseSettings


class ExpiryStrategy(StrEnum):
    """How expired session records are physically removed."""

    SWEEP = "sweep"  # plain index, records removed only by an explicit sweep
    TTL_INDEX = "ttl_index"  # MongoDB TTL monitor purges records once expires_at passes


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = []
    secure_cookies: bool = True  # Set to False for local development over plain HTTP
    store_timeout_ms: int = 3000  # Upper bound for server selection, connect and each operation
    session_ttl_seconds: int = 24 * 60 * 60
    remember_ttl_seconds: int = 30 * 24 * 60 * 60  # Used when the user asks to be remembered
    guide_session_ttl_days: int = 7
    session_expiry: ExpiryStrategy = ExpiryStrategy.SWEEP
    guide_session_expiry: ExpiryStrategy = ExpiryStrategy.TTL_INDEX
    signature_max_attempts: int = 10
    require_device_match: bool = False  # Reject user sessions presented without the bound device key
    revoke_all_on_refresh_reuse: bool = True

    model_config = {
        "env_file": [".env"],
        "env_prefix": "TOURGUIDE_",
        "extra": "ignore",
    }

from datetime import UTC, datetime


def now() -> datetime:
    return datetime.now(UTC)


def mask_token(token: str) -> str:
    """Shorten a credential for log output."""
    if len(token) <= 8:
        return "***"
    return f"{token[:6]}..."

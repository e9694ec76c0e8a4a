"""Credential cookies set on login and dropped on any authentication failure."""

from datetime import datetime

from fastapi import Response

from tourguide.utils import now

SESSION_COOKIE = "session_id"
DEVICE_KEY_COOKIE = "device_key"
GUIDE_TOKEN_COOKIE = "guide_token"
GUIDE_REFRESH_COOKIE = "guide_refresh_token"

USER_COOKIES = (SESSION_COOKIE, DEVICE_KEY_COOKIE)
GUIDE_COOKIES = (GUIDE_TOKEN_COOKIE, GUIDE_REFRESH_COOKIE)

# Cookies that become useless once the server rejects them
CREDENTIAL_COOKIES = (SESSION_COOKIE, GUIDE_TOKEN_COOKIE, GUIDE_REFRESH_COOKIE)


def _max_age(expires_at: datetime) -> int:
    return max(int((expires_at - now()).total_seconds()), 0)


def set_credential_cookie(response: Response, key: str, value: str, expires_at: datetime, secure: bool) -> None:
    response.set_cookie(
        key=key,
        value=value,
        httponly=True,
        samesite="lax",
        secure=secure,
        path="/",
        max_age=_max_age(expires_at),
    )


def clear_credential_cookies(response: Response, keys: tuple[str, ...] = CREDENTIAL_COOKIES) -> None:
    for key in keys:
        response.delete_cookie(key, path="/")

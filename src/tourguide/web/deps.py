from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie, APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from tourguide.app import App
from tourguide.config import Config
from tourguide.web.cookies import DEVICE_KEY_COOKIE, GUIDE_REFRESH_COOKIE, GUIDE_TOKEN_COOKIE, SESSION_COOKIE

# Security schemes
bearer_scheme = HTTPBearer(auto_error=False)
session_cookie_scheme = APIKeyCookie(name=SESSION_COOKIE, auto_error=False)
guide_token_cookie_scheme = APIKeyCookie(name=GUIDE_TOKEN_COOKIE, auto_error=False)
guide_refresh_cookie_scheme = APIKeyCookie(name=GUIDE_REFRESH_COOKIE, auto_error=False)
device_key_header_scheme = APIKeyHeader(name="X-Device-Key", auto_error=False)
device_key_cookie_scheme = APIKeyCookie(name=DEVICE_KEY_COOKIE, auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_config(request: Request) -> Config:
    return cast(Config, request.app.state.config)


def _bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return credentials.credentials
    return None


async def get_session_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
    session_cookie: Annotated[str | None, Depends(session_cookie_scheme)] = None,
) -> str | None:
    """User session id from the Authorization Bearer header (preferred) or cookie.

    Absence is not an error here; resolution decides what a missing id means.
    """
    return _bearer_token(credentials) or session_cookie


async def get_device_key(
    header: Annotated[str | None, Depends(device_key_header_scheme)] = None,
    cookie: Annotated[str | None, Depends(device_key_cookie_scheme)] = None,
) -> str | None:
    return header or cookie


async def get_guide_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
    token_cookie: Annotated[str | None, Depends(guide_token_cookie_scheme)] = None,
) -> str | None:
    """Guide access token from the Authorization Bearer header (preferred) or cookie."""
    return _bearer_token(credentials) or token_cookie


async def get_guide_refresh_cookie(
    refresh_cookie: Annotated[str | None, Depends(guide_refresh_cookie_scheme)] = None,
) -> str | None:
    return refresh_cookie


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
ConfigDep = Annotated[Config, Depends(get_config)]
SessionIdDep = Annotated[str | None, Depends(get_session_id)]
DeviceKeyDep = Annotated[str | None, Depends(get_device_key)]
GuideTokenDep = Annotated[str | None, Depends(get_guide_token)]
GuideRefreshCookieDep = Annotated[str | None, Depends(get_guide_refresh_cookie)]

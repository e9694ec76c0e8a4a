from datetime import datetime

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, Field

from tourguide.core.modules.user.models import UserView
from tourguide.web.cookies import DEVICE_KEY_COOKIE, SESSION_COOKIE, set_credential_cookie
from tourguide.web.deps import AppDep, ConfigDep, SessionIdDep
from tourguide.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class RegisterRequest(BaseModel):
    """Traveler signup request."""

    name: str = Field(..., min_length=2, max_length=120, description="Display name")
    username: str = Field(..., description="Lowercase letters, digits and hyphens, 3-20 characters")
    email: str = Field(..., description="Email address used to sign in")
    password: str = Field(..., min_length=1, description="Password")


class LoginRequest(BaseModel):
    """Authentication request."""

    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")
    remember: bool = Field(False, description="Keep the session for 30 days instead of one")


class LoginResponse(BaseModel):
    """Authentication response."""

    token: str = Field(..., description="Session id for subsequent requests")
    expires_at: datetime = Field(..., description="When the session stops being accepted")
    signature: str | None = Field(None, description="Device signature to send as X-Device-Key")


def client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


@router.post(
    "/auth/register",
    summary="Register traveler",
    description="Create a traveler account. Sign in separately afterwards.",
    operation_id="register",
    status_code=201,
    responses={
        201: {"description": "Account created"},
        400: {"model": ErrorResponse, "description": "Invalid data or email already registered"},
    },
)
async def register(register_data: RegisterRequest, app: AppDep) -> UserView:
    return await app.register_user(
        register_data.name, register_data.username, register_data.email, register_data.password
    )


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with email and password to receive a session.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(login_data: LoginRequest, request: Request, app: AppDep, config: ConfigDep, response: Response) -> LoginResponse:
    """Authenticate user and create session."""
    issued = await app.login(
        login_data.email,
        login_data.password,
        remember=login_data.remember,
        user_agent=request.headers.get("user-agent"),
        source_address=client_address(request),
    )

    # Cookies for browser-based clients
    set_credential_cookie(response, SESSION_COOKIE, issued.sid, issued.expires_at, config.secure_cookies)
    if issued.signature:
        set_credential_cookie(response, DEVICE_KEY_COOKIE, issued.signature, issued.expires_at, config.secure_cookies)
    response.headers["Cache-Control"] = "no-store"

    return LoginResponse(token=issued.sid, expires_at=issued.expires_at, signature=issued.signature)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Destroy the current session. Succeeds even when the session is already gone.",
    operation_id="logout",
    status_code=204,
    responses={204: {"description": "Successfully logged out"}},
)
async def logout(app: AppDep, sid: SessionIdDep, response: Response) -> None:
    await app.logout(sid)
    response.delete_cookie(SESSION_COOKIE, path="/")

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, Field

from tourguide.core.modules.guide.models import GuideProfile, GuideView
from tourguide.web.cookies import (
    GUIDE_COOKIES,
    GUIDE_REFRESH_COOKIE,
    GUIDE_TOKEN_COOKIE,
    clear_credential_cookies,
    set_credential_cookie,
)
from tourguide.web.deps import AppDep, ConfigDep, GuideRefreshCookieDep, GuideTokenDep
from tourguide.web.openapi import ErrorResponse
from tourguide.web.routers.auth import client_address

router = APIRouter(prefix="/guide-auth", tags=["guide-auth"])


class GuideSignupRequest(BaseModel):
    """Guide signup request."""

    name: str = Field(..., min_length=1, description="Display name")
    email: str = Field(..., description="Email address used to sign in")
    phone: str = Field(..., description="Contact phone number")
    password: str = Field(..., min_length=1, description="Password")
    profile: GuideProfile = Field(default_factory=GuideProfile, description="Optional public profile")


class GuideLoginRequest(BaseModel):
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class GuideLoginResponse(BaseModel):
    token: str = Field(..., description="Access token for subsequent requests")
    refresh_token: str = Field(..., description="Token used to obtain a new refresh token")
    expires_at: datetime = Field(..., description="When the session stops being accepted")
    session_id: UUID = Field(..., description="Session ID")


class RefreshRequest(BaseModel):
    refresh_token: str | None = Field(None, description="Current refresh token; the cookie is used when omitted")


class RefreshResponse(BaseModel):
    refresh_token: str = Field(..., description="Replacement refresh token; the previous one stops working")
    session_id: UUID = Field(..., description="Session ID, unchanged by rotation")


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=1, description="New password")


class RevokedSessionsResponse(BaseModel):
    revoked: int = Field(..., description="Number of sessions revoked", ge=0)


@router.post(
    "/signup",
    summary="Register guide",
    operation_id="guideSignup",
    status_code=201,
    responses={
        201: {"description": "Guide account created"},
        400: {"model": ErrorResponse, "description": "Invalid data or email/phone already registered"},
    },
)
async def signup(signup_data: GuideSignupRequest, app: AppDep) -> GuideView:
    return await app.register_guide(
        signup_data.name, signup_data.email, signup_data.phone, signup_data.password, signup_data.profile
    )


@router.post(
    "/login",
    summary="Authenticate guide",
    operation_id="guideLogin",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(
    login_data: GuideLoginRequest, request: Request, app: AppDep, config: ConfigDep, response: Response
) -> GuideLoginResponse:
    issued = await app.guide_login(
        login_data.email,
        login_data.password,
        user_agent=request.headers.get("user-agent"),
        source_address=client_address(request),
    )
    set_credential_cookie(response, GUIDE_TOKEN_COOKIE, issued.token, issued.expires_at, config.secure_cookies)
    set_credential_cookie(response, GUIDE_REFRESH_COOKIE, issued.refresh_token, issued.expires_at, config.secure_cookies)
    response.headers["Cache-Control"] = "no-store"
    return GuideLoginResponse(
        token=issued.token, refresh_token=issued.refresh_token, expires_at=issued.expires_at, session_id=issued.session_id
    )


@router.post(
    "/logout",
    summary="End guide session",
    operation_id="guideLogout",
    status_code=204,
    responses={204: {"description": "Session revoked or already gone"}},
)
async def logout(app: AppDep, token: GuideTokenDep, response: Response) -> None:
    await app.guide_logout(token)
    clear_credential_cookies(response, GUIDE_COOKIES)


@router.post(
    "/logout-all",
    summary="End all guide sessions",
    description="Revoke every session of the current guide on every device.",
    operation_id="guideLogoutAll",
    responses={
        200: {"description": "Sessions revoked"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout_all(app: AppDep, token: GuideTokenDep, response: Response) -> RevokedSessionsResponse:
    revoked = await app.guide_logout_all(token)
    clear_credential_cookies(response, GUIDE_COOKIES)
    return RevokedSessionsResponse(revoked=revoked)


@router.post(
    "/refresh",
    summary="Rotate refresh token",
    description="Exchange the current refresh token for a new one. Reusing an old refresh token fails.",
    operation_id="guideRefresh",
    responses={
        200: {"description": "Refresh token rotated"},
        401: {"model": ErrorResponse, "description": "Refresh token unknown, rotated or revoked"},
    },
)
async def refresh(
    refresh_data: RefreshRequest,
    app: AppDep,
    config: ConfigDep,
    token: GuideTokenDep,
    refresh_cookie: GuideRefreshCookieDep,
    response: Response,
) -> RefreshResponse:
    rotated = await app.refresh_guide_session(refresh_data.refresh_token or refresh_cookie, access_token=token)
    if refresh_cookie:
        set_credential_cookie(
            response, GUIDE_REFRESH_COOKIE, rotated.new_refresh_token, rotated.expires_at, config.secure_cookies
        )
    return RefreshResponse(refresh_token=rotated.new_refresh_token, session_id=rotated.session_id)


@router.get(
    "/me",
    summary="Get current guide",
    operation_id="getCurrentGuide",
    responses={
        200: {"description": "Current guide profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def me(app: AppDep, token: GuideTokenDep) -> GuideView:
    return await app.get_current_guide(token)


@router.post(
    "/change-password",
    summary="Change guide password",
    description="Change the password and revoke every session of the guide.",
    operation_id="guideChangePassword",
    status_code=204,
    responses={
        204: {"description": "Password changed"},
        400: {"model": ErrorResponse, "description": "Invalid current password or request"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def change_password(request: ChangePasswordRequest, app: AppDep, token: GuideTokenDep, response: Response) -> None:
    await app.change_guide_password(token, request.old_password, request.new_password)
    clear_credential_cookies(response, GUIDE_COOKIES)

from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from tourguide.core.modules.user.models import UserView
from tourguide.web.cookies import USER_COOKIES, clear_credential_cookies
from tourguide.web.deps import AppDep, DeviceKeyDep, SessionIdDep
from tourguide.web.openapi import ErrorResponse

router = APIRouter(tags=["profile"])


class ChangePasswordRequest(BaseModel):
    """Request to change user password."""

    old_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=1, description="New password")


@router.get(
    "/profile",
    summary="Get current user profile",
    description="Get the profile of the currently authenticated user.",
    operation_id="getCurrentUserProfile",
    responses={
        200: {"description": "Current user profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_profile(app: AppDep, sid: SessionIdDep, device_key: DeviceKeyDep) -> UserView:
    return await app.get_current_user(sid, device_key)


@router.post(
    "/profile/change-password",
    summary="Change password",
    description="Change the password and end every session of the user, this one included.",
    operation_id="changePassword",
    status_code=204,
    responses={
        204: {"description": "Password changed successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        400: {"model": ErrorResponse, "description": "Invalid current password or request"},
    },
)
async def change_password(
    request: ChangePasswordRequest, app: AppDep, sid: SessionIdDep, device_key: DeviceKeyDep, response: Response
) -> None:
    await app.change_password(sid, request.old_password, request.new_password, device_key)
    clear_credential_cookies(response, USER_COOKIES)


@router.delete(
    "/profile",
    summary="Delete account",
    description="Delete the current user and all of its sessions.",
    operation_id="deleteAccount",
    status_code=204,
    responses={
        204: {"description": "Account deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def delete_account(app: AppDep, sid: SessionIdDep, device_key: DeviceKeyDep, response: Response) -> None:
    await app.delete_account(sid, device_key)
    clear_credential_cookies(response, USER_COOKIES)

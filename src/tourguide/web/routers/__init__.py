from tourguide.web.routers.auth import router as auth_router
from tourguide.web.routers.guide_auth import router as guide_auth_router
from tourguide.web.routers.profile import router as profile_router

__all__ = [
    "auth_router",
    "guide_auth_router",
    "profile_router",
]

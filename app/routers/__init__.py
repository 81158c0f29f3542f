"""API routers."""

from app.routers.users import router as users_router

__all__ = ["users_router"]

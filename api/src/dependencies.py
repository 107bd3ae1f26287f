"""
FastAPI dependency injection for the user API.

The components are built once at startup by the application factory and
stored on ``app.state``; these dependencies hand them to the routers.
"""

from fastapi import Request

from api.src.handlers.user_handler import UserHandler
from api.src.repositories.user_repo import UserRepository


def get_user_handler(request: Request) -> UserHandler:
    """
    Get the user handler.

    Example:
        @router.get("/users")
        async def list_users(request: Request, handler: UserHandler = Depends(get_user_handler)):
            return await handler.all(request)
    """
    return request.app.state.user_handler


def get_user_repository(request: Request) -> UserRepository:
    """Get the user repository."""
    return request.app.state.user_repository

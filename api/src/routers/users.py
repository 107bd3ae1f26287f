"""
User router.

Routes for the user resource. Bodies are read by the handler itself so
that key presence (for patch) and malformed JSON (400) can be told apart
from field validation errors (422).

The search routes are registered before ``/users/{user_id}`` so that
``/users/search`` is never taken for an id.
"""

from fastapi import APIRouter, Depends, Request, Response

from api.src.dependencies import get_user_handler
from api.src.handlers.user_handler import UserHandler

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", summary="List all users")
async def list_users(request: Request, handler: UserHandler = Depends(get_user_handler)) -> Response:
    return await handler.all(request)


@router.get("/search", summary="Search users by query parameters")
async def search_users_get(request: Request, handler: UserHandler = Depends(get_user_handler)) -> Response:
    """
    Search users.

    Filter fields are taken from the query string, e.g.
    ``?username=ali&status=active,inactive&date_of_birth.min=1990-01-01T00:00:00Z&page=2&limit=10&sort=-username``.
    """
    return await handler.search(request)


@router.post("/search", summary="Search users by JSON filter")
async def search_users_post(request: Request, handler: UserHandler = Depends(get_user_handler)) -> Response:
    return await handler.search(request)


@router.get("/{user_id}", summary="Load a user")
async def load_user(user_id: str, request: Request, handler: UserHandler = Depends(get_user_handler)) -> Response:
    return await handler.load(request, user_id)


@router.post("", summary="Create a user")
async def create_user(request: Request, handler: UserHandler = Depends(get_user_handler)) -> Response:
    return await handler.create(request)


@router.put("/{user_id}", summary="Replace a user")
async def update_user(user_id: str, request: Request, handler: UserHandler = Depends(get_user_handler)) -> Response:
    return await handler.update(request, user_id)


@router.patch("/{user_id}", summary="Update the given fields of a user")
async def patch_user(user_id: str, request: Request, handler: UserHandler = Depends(get_user_handler)) -> Response:
    return await handler.patch(request, user_id)


@router.delete("/{user_id}", summary="Delete a user")
async def delete_user(user_id: str, request: Request, handler: UserHandler = Depends(get_user_handler)) -> Response:
    return await handler.delete(request, user_id)

"""
Header middleware.

Gives every request an id (taken from the incoming header or generated),
binds it to the log context, and adds it together with the configured
static headers to the response. Unexpected errors from inner layers are
turned into a response here, when an error handler is given, so that error
responses carry the same headers.
"""

import secrets
import string
from typing import Awaitable, Callable, Dict, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from shared.logging import bind_context, unbind_context

_ALPHABET = string.ascii_letters + string.digits


def generate_request_id(length: int = 16) -> str:
    """Random alphanumeric request id."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


class HeaderMiddleware(BaseHTTPMiddleware):
    """Middleware for request ids and static response headers."""

    def __init__(
        self,
        app,
        header_name: str = "X-Request-ID",
        response_headers: Optional[Dict[str, str]] = None,
        generate_id: Callable[[], str] = generate_request_id,
        on_error: Optional[Callable[[Request, Exception], Awaitable[Response]]] = None,
    ):
        super().__init__(app)
        self.header_name = header_name
        self.response_headers = response_headers or {}
        self.generate_id = generate_id
        self.on_error = on_error

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(self.header_name) or self.generate_id()
        request.state.request_id = request_id

        bind_context(request_id=request_id)
        try:
            response = await call_next(request)
        except Exception as e:
            if self.on_error is None:
                raise
            response = await self.on_error(request, e)
        finally:
            unbind_context("request_id")

        for name, value in self.response_headers.items():
            response.headers[name] = value
        response.headers[self.header_name] = request_id
        return response

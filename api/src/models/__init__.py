"""Data models for the FastAPI service.

This package contains Pydantic models for request/response validation,
the stored user document, and the result types returned by the repository.
"""

from api.src.models.common import ErrorMessage, SearchResult, WriteResult, WriteStatus
from api.src.models.user import TimeRange, User, UserFilter, UserStatus

__all__ = [
    "ErrorMessage",
    "SearchResult",
    "TimeRange",
    "User",
    "UserFilter",
    "UserStatus",
    "WriteResult",
    "WriteStatus",
]

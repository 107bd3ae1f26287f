"""
Result and error models shared by the handler, service and repository layers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class WriteStatus(str, Enum):
    """
    Outcome of a write against the store.

    - OK: the document was inserted, matched or deleted
    - NOT_FOUND: no document has the requested id
    - CONFLICT: the write was rejected by a unique index
    """
    OK = "ok"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class WriteResult:
    """Write outcome plus the driver's inserted/matched/deleted count."""
    status: WriteStatus
    count: int = 0

    @classmethod
    def ok(cls, count: int = 1) -> "WriteResult":
        return cls(WriteStatus.OK, count)

    @classmethod
    def not_found(cls) -> "WriteResult":
        return cls(WriteStatus.NOT_FOUND, 0)

    @classmethod
    def conflict(cls) -> "WriteResult":
        return cls(WriteStatus.CONFLICT, 0)


class ErrorMessage(BaseModel):
    """Field level validation error."""
    field: str = Field(..., description="Dotted path of the invalid field")
    code: str = Field(..., description="Machine readable error code")
    message: str = Field(..., description="Human readable message")

    model_config = {
        "json_schema_extra": {
            "example": {
                "field": "email",
                "code": "value_error",
                "message": "value is not a valid email address"
            }
        }
    }


class SearchResult(BaseModel, Generic[T]):
    """One page of search results plus the total match count."""
    list: List[T] = Field(..., description="Matching items in the requested page")
    total: int = Field(..., ge=0, description="Total count of matching records")

"""
User resource models.

Provides Pydantic schemas for:
- The User resource stored in MongoDB and exposed over HTTP
- The UserFilter used by the search endpoints
- Conversion between API models and Mongo documents
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9 ().-]*$")


class UserStatus(str, Enum):
    """Lifecycle status of a user account."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class User(BaseModel):
    """User resource schema."""
    id: Optional[str] = Field(
        None,
        max_length=40,
        description="User ID (generated on create when absent)"
    )
    username: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Username"
    )
    email: EmailStr = Field(
        ...,
        max_length=100,
        description="Email address"
    )
    phone: Optional[str] = Field(
        None,
        max_length=18,
        description="Phone number"
    )
    date_of_birth: Optional[datetime] = Field(
        None,
        description="Date of birth"
    )
    status: Optional[UserStatus] = Field(
        None,
        description="Account status"
    )

    model_config = {
        "use_enum_values": True,
        "json_schema_extra": {
            "example": {
                "id": "6523f5a1c2b1d8e4f0a1b2c3",
                "username": "alice",
                "email": "alice@example.com",
                "phone": "+84987654321",
                "date_of_birth": "1990-04-01T00:00:00Z",
                "status": "active"
            }
        }
    }

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        """Validate phone number characters."""
        if v is None:
            return v
        if not PHONE_PATTERN.match(v):
            raise ValueError("Phone must contain digits, spaces, dots, dashes or parentheses")
        return v

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Validate date of birth is not in the future."""
        if v is None:
            return v
        aware = v if v.tzinfo else v.replace(tzinfo=timezone.utc)
        if aware > datetime.now(timezone.utc):
            raise ValueError("Date of birth cannot be in the future")
        return v

    def to_document(self) -> Dict[str, Any]:
        """Convert to a Mongo document, storing the id as ``_id``."""
        doc = self.model_dump(exclude={"id"}, exclude_none=True)
        doc["_id"] = self.id
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "User":
        """Build a user from a stored Mongo document."""
        data = {k: v for k, v in doc.items() if k != "_id"}
        data["id"] = str(doc["_id"])
        return cls.model_validate(data)


class UserPatch(User):
    """User schema with every field optional, used to check patch bodies."""
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = Field(None, max_length=100)


class TimeRange(BaseModel):
    """Inclusive time range; either bound may be omitted."""
    min: Optional[datetime] = Field(None, description="Lower bound (inclusive)")
    max: Optional[datetime] = Field(None, description="Upper bound (inclusive)")

    @field_validator("max")
    @classmethod
    def validate_range(cls, v: Optional[datetime], info) -> Optional[datetime]:
        """Validate max is after min."""
        if v is None:
            return v

        lower = info.data.get("min")
        if lower and v < lower:
            raise ValueError("max must be after or equal to min")

        return v


class UserFilter(BaseModel):
    """
    Filter parameters for searching users.

    Supports filtering by:
    - Exact id
    - Username (contains) and email/phone (prefix)
    - Status set membership
    - Date of birth range
    - Free text over username and email
    """
    id: Optional[str] = Field(None, description="Filter by exact user ID")
    username: Optional[str] = Field(None, description="Username contains")
    email: Optional[str] = Field(None, description="Email starts with")
    phone: Optional[str] = Field(None, description="Phone starts with")
    status: Optional[List[UserStatus]] = Field(None, description="Status is one of")
    date_of_birth: Optional[TimeRange] = Field(None, description="Date of birth range")
    q: Optional[str] = Field(None, description="Free text over username and email")
    page: Optional[int] = Field(None, description="Page number (1-based)")
    limit: Optional[int] = Field(None, description="Page size")
    sort: Optional[str] = Field(None, description="Sort fields, '-' prefix for descending")

    model_config = {
        "use_enum_values": True,
        "json_schema_extra": {
            "example": {
                "username": "ali",
                "status": ["active"],
                "date_of_birth": {"min": "1980-01-01T00:00:00Z"},
                "page": 1,
                "limit": 20,
                "sort": "-username"
            }
        }
    }

"""
Payload validation for the user resource.

Client problems are returned as a list of ErrorMessage, never raised.
Only a failure of the validator itself raises (ValidatorError), which the
handler reports as an internal error.
"""

from typing import Any, Dict, List, Optional, Tuple, Type

import structlog
from pydantic import BaseModel, ValidationError

from api.src.errors import ValidatorError
from api.src.models.common import ErrorMessage
from api.src.models.user import User, UserPatch

logger = structlog.get_logger(__name__)

_VALUE_ERROR_PREFIX = "Value error, "


def to_error_messages(error: ValidationError) -> List[ErrorMessage]:
    """Convert a pydantic ValidationError into field level messages."""
    messages = []
    for item in error.errors():
        loc = ".".join(str(part) for part in item.get("loc", ())) or "body"
        message = item.get("msg", "Invalid value")
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        messages.append(ErrorMessage(field=loc, code=item.get("type", "invalid"), message=message))
    return messages


class UserValidator:
    """Validates full and partial user payloads."""

    def __init__(self, model: Type[BaseModel] = User, patch_model: Type[BaseModel] = UserPatch):
        self.model = model
        self.patch_model = patch_model
        self.required_fields = frozenset(
            name for name, info in model.model_fields.items() if info.is_required()
        )

    def validate(self, payload: Dict[str, Any]) -> Tuple[Optional[BaseModel], List[ErrorMessage]]:
        """
        Validate a full resource payload.

        Returns:
            Tuple of (decoded resource or None, error messages)

        Raises:
            ValidatorError: If validation itself fails
        """
        try:
            return self.model.model_validate(payload), []
        except ValidationError as e:
            return None, to_error_messages(e)
        except Exception as e:
            logger.error("validator_failed", error=str(e), model=self.model.__name__)
            raise ValidatorError(str(e)) from e

    def validate_patch(self, fields: Dict[str, Any]) -> Tuple[Dict[str, Any], List[ErrorMessage]]:
        """
        Validate only the fields present in a patch.

        Explicit null on a required field is rejected. Values are returned
        converted to their stored types (datetimes, enum values).

        Returns:
            Tuple of (converted field map, error messages)

        Raises:
            ValidatorError: If validation itself fails
        """
        errors = [
            ErrorMessage(field=name, code="missing", message="Field required")
            for name in sorted(self.required_fields)
            if name in fields and fields[name] is None
        ]

        try:
            patched = self.patch_model.model_validate(fields)
        except ValidationError as e:
            return {}, errors + to_error_messages(e)
        except Exception as e:
            logger.error("validator_failed", error=str(e), model=self.patch_model.__name__)
            raise ValidatorError(str(e)) from e

        if errors:
            return {}, errors
        if not fields:
            return {}, []
        return patched.model_dump(include=set(fields)), []

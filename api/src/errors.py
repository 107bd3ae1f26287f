"""
Application exceptions.

Client input problems that carry field level messages are raised as
SearchValidationError; configuration and validator failures are fatal
or surface as internal errors.
"""

from typing import List

from api.src.models.common import ErrorMessage


class FilterModelError(Exception):
    """Filter mapping table does not match the resource or filter type."""


class FilterDecodeError(ValueError):
    """Search request could not be decoded into a filter."""


class SearchValidationError(Exception):
    """Search parameters are well formed but not acceptable."""

    def __init__(self, errors: List[ErrorMessage]):
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))
        self.errors = errors


class ValidatorError(Exception):
    """The validator itself failed, as opposed to rejecting the payload."""

"""
Unit tests for user payload validation.

Tests cover:
- Full payload validation and error messages
- Patch validation of present fields only
- Explicit null on required fields
- Validator failures surfacing as ValidatorError
"""

from datetime import datetime, timezone

import pytest
from pydantic import BaseModel, field_validator

from api.src.errors import ValidatorError
from api.src.models.user import User
from api.src.validation import UserValidator


@pytest.fixture
def validator():
    return UserValidator()


class TestValidate:
    """Validation of create and replace payloads."""

    def test_valid_payload(self, validator, alice):
        user, errors = validator.validate(alice)

        assert errors == []
        assert isinstance(user, User)
        assert user.status == "active"
        assert user.date_of_birth == datetime(1990, 4, 1, tzinfo=timezone.utc)

    def test_unknown_fields_are_ignored(self, validator, alice):
        user, errors = validator.validate({**alice, "nickname": "al"})

        assert errors == []
        assert not hasattr(user, "nickname")

    def test_collects_every_error(self, validator):
        user, errors = validator.validate({"email": "nope", "phone": "x" * 19, "status": "gone"})

        assert user is None
        assert sorted(e.field for e in errors) == ["email", "phone", "status", "username"]

    def test_value_error_prefix_is_stripped(self, validator, alice):
        _, errors = validator.validate({**alice, "date_of_birth": "2999-01-01T00:00:00Z"})

        assert errors[0].message == "Date of birth cannot be in the future"
        assert errors[0].code == "value_error"

    def test_username_length(self, validator, alice):
        _, errors = validator.validate({**alice, "username": ""})

        assert errors[0].field == "username"
        assert errors[0].code == "string_too_short"


class TestValidatePatch:
    """Validation of patch field maps."""

    def test_only_present_fields_returned(self, validator):
        values, errors = validator.validate_patch({"status": "suspended"})

        assert errors == []
        assert values == {"status": "suspended"}

    def test_values_are_converted(self, validator):
        values, _ = validator.validate_patch({"date_of_birth": "1990-04-01T00:00:00Z"})

        assert values["date_of_birth"] == datetime(1990, 4, 1, tzinfo=timezone.utc)

    def test_null_optional_field_is_kept(self, validator):
        values, errors = validator.validate_patch({"phone": None})

        assert errors == []
        assert values == {"phone": None}

    @pytest.mark.parametrize("name", ["username", "email"])
    def test_null_required_field_rejected(self, validator, name):
        values, errors = validator.validate_patch({name: None})

        assert values == {}
        assert [(e.field, e.code) for e in errors] == [(name, "missing")]

    def test_invalid_value_rejected(self, validator):
        values, errors = validator.validate_patch({"email": "nope"})

        assert values == {}
        assert errors[0].field == "email"

    def test_empty_patch(self, validator):
        assert validator.validate_patch({}) == ({}, [])


class Exploding(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def explode(cls, v):
        raise RuntimeError("validator bug")


class TestValidatorFailure:
    """Failures of the validator itself are not client errors."""

    def test_validate_raises_validator_error(self):
        validator = UserValidator(model=Exploding, patch_model=Exploding)

        with pytest.raises(ValidatorError):
            validator.validate({"name": "x"})

    def test_validate_patch_raises_validator_error(self):
        validator = UserValidator(model=Exploding, patch_model=Exploding)

        with pytest.raises(ValidatorError):
            validator.validate_patch({"name": "x"})

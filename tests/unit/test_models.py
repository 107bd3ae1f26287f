"""
Unit tests for the user and result models.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from api.src.models.common import SearchResult, WriteResult, WriteStatus
from api.src.models.user import TimeRange, User, UserStatus


class TestUser:
    """Test the User resource model."""

    def test_to_document_stores_id_as_key(self):
        user = User(id="u-1", username="alice", email="alice@example.com", status=UserStatus.ACTIVE)

        assert user.to_document() == {
            "_id": "u-1",
            "username": "alice",
            "email": "alice@example.com",
            "status": "active",
        }

    def test_from_document_restores_id(self):
        doc = {"_id": "u-1", "username": "alice", "email": "alice@example.com", "phone": None}

        user = User.from_document(doc)

        assert user.id == "u-1"
        assert user.phone is None

    def test_from_document_stringifies_object_id(self):
        from bson import ObjectId

        oid = ObjectId()
        user = User.from_document({"_id": oid, "username": "alice", "email": "alice@example.com"})

        assert user.id == str(oid)

    @pytest.mark.parametrize("phone", ["+84987654321", "028 3823-4567", "090.123.4567"])
    def test_valid_phones(self, phone):
        assert User(username="a", email="a@example.com", phone=phone).phone == phone

    @pytest.mark.parametrize("phone", ["call me", "+", "12345678901234567890"])
    def test_invalid_phones(self, phone):
        with pytest.raises(ValidationError):
            User(username="a", email="a@example.com", phone=phone)

    def test_naive_date_of_birth_in_past(self):
        user = User(username="a", email="a@example.com", date_of_birth=datetime(1990, 1, 1))

        assert user.date_of_birth == datetime(1990, 1, 1)

    def test_date_of_birth_in_future_rejected(self):
        tomorrow = datetime.now(timezone.utc) + timedelta(days=1)

        with pytest.raises(ValidationError, match="future"):
            User(username="a", email="a@example.com", date_of_birth=tomorrow)

    def test_id_length_limited(self):
        with pytest.raises(ValidationError):
            User(id="x" * 41, username="a", email="a@example.com")


class TestTimeRange:
    """Test the inclusive range model."""

    def test_equal_bounds_allowed(self):
        moment = datetime(2000, 1, 1, tzinfo=timezone.utc)

        assert TimeRange(min=moment, max=moment).max == moment

    def test_inverted_bounds_rejected(self):
        with pytest.raises(ValidationError):
            TimeRange(min=datetime(2000, 1, 1), max=datetime(1999, 1, 1))


class TestWriteResult:
    """Test write outcome constructors."""

    def test_ok(self):
        assert WriteResult.ok() == WriteResult(WriteStatus.OK, 1)

    def test_not_found_and_conflict_have_zero_count(self):
        assert WriteResult.not_found().count == 0
        assert WriteResult.conflict().status == WriteStatus.CONFLICT


class TestSearchResult:
    """Test the search response envelope."""

    def test_serializes_list_and_total(self):
        result = SearchResult[User](list=[User(id="u-1", username="a", email="a@example.com")], total=7)

        assert result.model_dump(mode="json", exclude_none=True) == {
            "list": [{"id": "u-1", "username": "a", "email": "a@example.com"}],
            "total": 7,
        }

    def test_total_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            SearchResult[User](list=[], total=-1)

"""
Shared pytest fixtures.

Provides an in-memory stand-in for a pymongo AsyncCollection so that the
real UserRepository, service, handler and middleware can be exercised
over HTTP without a MongoDB server.
"""

import copy
import re
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from api.src.config import Settings
from api.src.main import create_app
from api.src.repositories.user_repo import UserRepository


# ============================================================================
# IN-MEMORY COLLECTION (Test Double)
# ============================================================================


def _compare(value: Any, op: str, arg: Any, options: str) -> bool:
    if op == "$regex":
        flags = re.IGNORECASE if "i" in options else 0
        return isinstance(value, str) and re.search(arg, value, flags) is not None
    if op == "$in":
        return value in arg
    if op == "$gte":
        return value is not None and value >= arg
    if op == "$lte":
        return value is not None and value <= arg
    raise NotImplementedError(op)


def matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    """Evaluate the subset of the MongoDB query language the query builder emits."""
    for key, cond in query.items():
        if key == "$and":
            if not all(matches(doc, q) for q in cond):
                return False
        elif key == "$or":
            if not any(matches(doc, q) for q in cond):
                return False
        elif isinstance(cond, dict):
            options = cond.get("$options", "")
            for op, arg in cond.items():
                if op != "$options" and not _compare(doc.get(key), op, arg, options):
                    return False
        elif doc.get(key) != cond:
            return False
    return True


class AsyncCursor:
    """Async iterable over a fixed list of documents."""

    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = list(docs)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._docs:
            raise StopAsyncIteration
        return self._docs.pop(0)


class FakeDatabase:
    def __init__(self):
        self.healthy = True

    async def command(self, name: str):
        if not self.healthy:
            raise PyMongoError("server selection timeout")
        return {"ok": 1.0}


class FakeCollection:
    """Dict backed collection with unique index enforcement."""

    def __init__(self, name: str = "users"):
        self.name = name
        self.database = FakeDatabase()
        self.docs: Dict[Any, Dict[str, Any]] = {}
        self.unique_fields: List[str] = []
        self.fail: Optional[Exception] = None

    def _check(self):
        if self.fail is not None:
            raise self.fail

    def _check_unique(self, doc: Dict[str, Any], exclude_id: Any = None) -> None:
        for other_id, other in self.docs.items():
            if other_id == exclude_id:
                continue
            for name in self.unique_fields:
                if name in doc and other.get(name) == doc[name]:
                    raise DuplicateKeyError(f"E11000 duplicate key error dup key: {{ {name}: ... }}", 11000)

    async def create_index(self, keys, unique: bool = False, name: Optional[str] = None):
        if unique:
            self.unique_fields.extend(field for field, _ in keys)
        return name

    async def insert_one(self, doc: Dict[str, Any]):
        self._check()
        if doc["_id"] in self.docs:
            raise DuplicateKeyError("E11000 duplicate key error dup key: { _id: ... }", 11000)
        self._check_unique(doc)
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query: Dict[str, Any]):
        self._check()
        for doc in self.docs.values():
            if matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query: Dict[str, Any], sort=None, skip: int = 0, limit: int = 0):
        self._check()
        if skip > 2**63 - 1 or limit > 2**63 - 1:
            raise OverflowError("MongoDB can only handle up to 8-byte ints")
        docs = [copy.deepcopy(d) for d in self.docs.values() if matches(d, query)]
        for column, direction in reversed(sort or []):
            present = [d for d in docs if d.get(column) is not None]
            missing = [d for d in docs if d.get(column) is None]
            present.sort(key=lambda d: d[column], reverse=direction < 0)
            docs = missing + present if direction > 0 else present + missing
        docs = docs[skip:]
        if limit:
            docs = docs[:limit]
        return AsyncCursor(docs)

    async def count_documents(self, query: Dict[str, Any], limit: int = 0):
        self._check()
        count = sum(1 for d in self.docs.values() if matches(d, query))
        return min(count, limit) if limit else count

    async def replace_one(self, query: Dict[str, Any], replacement: Dict[str, Any]):
        self._check()
        doc = await self.find_one(query)
        if doc is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        self._check_unique(replacement, exclude_id=doc["_id"])
        self.docs[doc["_id"]] = copy.deepcopy(replacement)
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def update_one(self, query: Dict[str, Any], update: Dict[str, Any]):
        self._check()
        doc = await self.find_one(query)
        if doc is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        changes = update["$set"]
        self._check_unique(changes, exclude_id=doc["_id"])
        self.docs[doc["_id"]].update(copy.deepcopy(changes))
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def delete_one(self, query: Dict[str, Any]):
        self._check()
        doc = await self.find_one(query)
        if doc is None:
            return SimpleNamespace(deleted_count=0)
        del self.docs[doc["_id"]]
        return SimpleNamespace(deleted_count=1)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        log_format="text",
        log_level="WARNING",
        log_response_body=True,
    )


@pytest.fixture
def collection() -> FakeCollection:
    coll = FakeCollection()
    # Same unique index UserRepository.ensure_indexes creates.
    coll.unique_fields.append("username")
    return coll


@pytest.fixture
def repository(collection: FakeCollection) -> UserRepository:
    return UserRepository(collection)


@pytest.fixture
def app(settings: Settings, repository: UserRepository):
    return create_app(settings=settings, repository=repository)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def alice() -> Dict[str, Any]:
    return {
        "username": "alice",
        "email": "alice@example.com",
        "phone": "+84987654321",
        "date_of_birth": "1990-04-01T00:00:00Z",
        "status": "active",
    }

"""
User repository for database operations.

Provides async CRUD and search operations for users on a MongoDB
collection through the pymongo async API. Write operations report their
outcome as a WriteResult; driver errors propagate unchanged and are never
reported as "not found".
"""

from typing import Any, Dict, List, Optional, Tuple

import structlog
from bson import ObjectId
from pymongo import ASCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from api.src.models.common import WriteResult
from api.src.models.user import User
from api.src.search.query_builder import SearchQuery

logger = structlog.get_logger(__name__)


class UserRepository:
    """Repository for user documents."""

    def __init__(self, collection: AsyncCollection):
        """
        Initialize user repository.

        Args:
            collection: Collection holding user documents
        """
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """Create the unique username index used to detect conflicts."""
        await self.collection.create_index(
            [("username", ASCENDING)],
            unique=True,
            name="username_unique",
        )
        logger.info("user_indexes_ensured", collection=self.collection.name)

    async def ping(self) -> None:
        """
        Check the database is reachable.

        Raises:
            PyMongoError: If the server does not answer
        """
        await self.collection.database.command("ping")

    async def all(self) -> List[User]:
        """
        Get every user, ordered by id.

        Returns:
            List of users
        """
        try:
            cursor = self.collection.find({}, sort=[("_id", ASCENDING)])
            return [User.from_document(doc) async for doc in cursor]

        except Exception as e:
            logger.error("user_list_failed", error=str(e))
            raise

    async def load(self, user_id: str) -> Optional[User]:
        """
        Get user by ID.

        Args:
            user_id: User ID

        Returns:
            User or None if not found
        """
        try:
            doc = await self.collection.find_one({"_id": user_id})
            if doc is None:
                logger.debug("user_not_found", user_id=user_id)
                return None
            return User.from_document(doc)

        except Exception as e:
            logger.error("user_get_by_id_failed", error=str(e), user_id=user_id)
            raise

    async def create(self, user: User) -> WriteResult:
        """
        Insert a new user.

        A user without an id gets a generated one, assigned on ``user``
        so the caller can return it.

        Args:
            user: User to insert

        Returns:
            OK with the inserted count, or CONFLICT on a duplicate key
        """
        if not user.id:
            user.id = str(ObjectId())

        try:
            await self.collection.insert_one(user.to_document())
            logger.info("user_created", user_id=user.id)
            return WriteResult.ok(1)

        except DuplicateKeyError:
            logger.warning("user_already_exists", user_id=user.id, username=user.username)
            return WriteResult.conflict()
        except Exception as e:
            logger.error("user_create_failed", error=str(e), user_id=user.id)
            raise

    async def update(self, user: User) -> WriteResult:
        """
        Replace every non-id field of an existing user.

        Args:
            user: User with the id of the document to replace

        Returns:
            OK, NOT_FOUND, or CONFLICT on a duplicate key
        """
        try:
            result = await self.collection.replace_one({"_id": user.id}, user.to_document())
            if result.matched_count == 0:
                logger.debug("user_not_found", user_id=user.id)
                return WriteResult.not_found()

            logger.info("user_updated", user_id=user.id)
            return WriteResult.ok(result.matched_count)

        except DuplicateKeyError:
            logger.warning("user_update_conflict", user_id=user.id)
            return WriteResult.conflict()
        except Exception as e:
            logger.error("user_update_failed", error=str(e), user_id=user.id)
            raise

    async def patch(self, user_id: str, fields: Dict[str, Any]) -> WriteResult:
        """
        Write only the supplied fields of an existing user.

        Args:
            user_id: User ID
            fields: Field name to new value; other fields are untouched

        Returns:
            OK, NOT_FOUND, or CONFLICT on a duplicate key
        """
        try:
            if not fields:
                found = await self.collection.count_documents({"_id": user_id}, limit=1)
                return WriteResult.ok(found) if found else WriteResult.not_found()

            result = await self.collection.update_one({"_id": user_id}, {"$set": fields})
            if result.matched_count == 0:
                logger.debug("user_not_found", user_id=user_id)
                return WriteResult.not_found()

            logger.info("user_patched", user_id=user_id, fields=sorted(fields))
            return WriteResult.ok(result.matched_count)

        except DuplicateKeyError:
            logger.warning("user_patch_conflict", user_id=user_id)
            return WriteResult.conflict()
        except Exception as e:
            logger.error("user_patch_failed", error=str(e), user_id=user_id)
            raise

    async def delete(self, user_id: str) -> WriteResult:
        """
        Delete user by ID.

        Args:
            user_id: User ID

        Returns:
            OK with the deleted count, or NOT_FOUND
        """
        try:
            result = await self.collection.delete_one({"_id": user_id})
            if result.deleted_count == 0:
                logger.debug("user_not_found", user_id=user_id)
                return WriteResult.not_found()

            logger.info("user_deleted", user_id=user_id)
            return WriteResult.ok(result.deleted_count)

        except Exception as e:
            logger.error("user_delete_failed", error=str(e), user_id=user_id)
            raise

    async def search(self, query: SearchQuery) -> Tuple[List[User], int]:
        """
        Run a search and count all matches.

        The count uses the same filter without the page window.

        Args:
            query: Built search query

        Returns:
            Tuple of (users in the page, total count)
        """
        try:
            total = await self.collection.count_documents(query.filter)
            cursor = self.collection.find(
                query.filter,
                sort=query.sort,
                skip=query.skip,
                limit=query.limit,
            )
            users = [User.from_document(doc) async for doc in cursor]
            return users, total

        except Exception as e:
            logger.error(
                "user_search_failed",
                error=str(e),
                skip=query.skip,
                limit=query.limit
            )
            raise

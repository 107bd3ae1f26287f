"""
User service.

Sits between the HTTP handler and the repository. Apart from turning a
filter into a search query it passes calls straight through.
"""

from typing import Any, Dict, List, Optional, Tuple

from api.src.models.common import WriteResult
from api.src.models.user import User, UserFilter
from api.src.repositories.user_repo import UserRepository
from api.src.search.filter_model import FilterModel
from api.src.search.query_builder import build_search


class UserService:
    """Use cases of the user resource."""

    def __init__(
        self,
        repository: UserRepository,
        filter_model: FilterModel,
        default_limit: int = 20,
        max_limit: int = 1000,
    ):
        self.repository = repository
        self.filter_model = filter_model
        self.default_limit = default_limit
        self.max_limit = max_limit

    async def all(self) -> List[User]:
        return await self.repository.all()

    async def load(self, user_id: str) -> Optional[User]:
        return await self.repository.load(user_id)

    async def create(self, user: User) -> WriteResult:
        return await self.repository.create(user)

    async def update(self, user: User) -> WriteResult:
        return await self.repository.update(user)

    async def patch(self, user_id: str, fields: Dict[str, Any]) -> WriteResult:
        return await self.repository.patch(user_id, fields)

    async def delete(self, user_id: str) -> WriteResult:
        return await self.repository.delete(user_id)

    async def search(self, flt: UserFilter) -> Tuple[List[User], int]:
        """
        Search users.

        Raises:
            SearchValidationError: If the page size or sort is invalid
        """
        query = build_search(flt, self.filter_model, self.default_limit, self.max_limit)
        return await self.repository.search(query)

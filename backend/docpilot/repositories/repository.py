"""Repository repository for database operations"""

from typing import Any, Dict, List, Optional

from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from docpilot.entities import Repository
from docpilot.services.pipeline_exceptions import RepositoryAlreadyRegistered

from .base import BaseRepository
from .interfaces import Identifier, RepositoryStore


class RepositoryRepository(BaseRepository[Repository], RepositoryStore):
    """Repository for repository entities (yes, repo of repos!)"""

    def __init__(self, db: AsyncDatabase):
        super().__init__(db, "repositories", Repository)

    async def insert(self, repository: Repository) -> Repository:
        try:
            return await self.insert_one(repository)
        except DuplicateKeyError as exc:
            # uniq_active_full_name lost a race with a concurrent registration
            raise RepositoryAlreadyRegistered(repository.full_name) from exc

    async def get(self, repository_id: Identifier) -> Optional[Repository]:
        return await self.find_by_id(repository_id)

    async def find_active_by_full_name(self, full_name: str) -> Optional[Repository]:
        return await self.find_one(
            {"full_name": full_name.lower(), "is_active": True}
        )

    async def list(self, active_only: bool = False) -> List[Repository]:
        query: Dict[str, Any] = {}
        if active_only:
            query["is_active"] = True
        return await self.find_many(query, sort=[("created_at", -1), ("_id", -1)])

    async def update_fields(
        self, repository_id: Identifier, updates: Dict[str, Any]
    ) -> Optional[Repository]:
        return await self.update_one(repository_id, updates)

    async def count(self, active_only: bool = False) -> int:
        return await self.count_matching({"is_active": True} if active_only else {})

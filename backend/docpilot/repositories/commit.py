"""Commit repository - append-only, deduplicated by commit hash."""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from docpilot.entities import Commit

from .base import BaseRepository
from .interfaces import CommitStore, Identifier

logger = logging.getLogger(__name__)


class CommitRepository(BaseRepository[Commit], CommitStore):
    """MongoDB commit store. Relies on the unique (repository_id, commit_hash) index."""

    def __init__(self, db: AsyncDatabase):
        super().__init__(db, "commits", Commit)

    async def upsert(
        self, repository_id: Identifier, commit: Commit
    ) -> Tuple[Commit, bool]:
        repo_oid = self._to_object_id(repository_id)
        key = {"repository_id": repo_oid, "commit_hash": commit.commit_hash}

        document = commit.model_copy(update={"repository_id": repo_oid}).to_mongo()
        # Seeded from the filter on insert
        document.pop("repository_id", None)
        document.pop("commit_hash", None)

        is_new = False
        try:
            result = await self.collection.update_one(
                key, {"$setOnInsert": document}, upsert=True
            )
            is_new = result.upserted_id is not None
        except DuplicateKeyError:
            # Lost an insert race against a concurrent ingestion of the same hash
            logger.debug("Concurrent insert of commit %s", commit.commit_hash)

        stored = await self.find_one(key)
        return stored, is_new

    async def list_since(
        self,
        repository_id: Identifier,
        since: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[Commit]:
        query: Dict[str, Any] = {"repository_id": self._to_object_id(repository_id)}
        if since is not None:
            query["timestamp"] = {"$gte": since}
        return await self.find_many(
            query, sort=[("timestamp", -1), ("_id", -1)], limit=limit
        )

    async def list_all(self, repository_id: Identifier) -> List[Commit]:
        return await self.find_many(
            {"repository_id": self._to_object_id(repository_id)},
            sort=[("timestamp", -1), ("_id", -1)],
        )

    async def existing_hashes(
        self, repository_id: Identifier, hashes: Iterable[str]
    ) -> Set[str]:
        wanted = list(dict.fromkeys(hashes))
        if not wanted:
            return set()
        cursor = self.collection.find(
            {
                "repository_id": self._to_object_id(repository_id),
                "commit_hash": {"$in": wanted},
            },
            {"commit_hash": 1},
        )
        return {doc["commit_hash"] for doc in await cursor.to_list(length=None)}

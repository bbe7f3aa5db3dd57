"""MongoDB-backed Store: repositories plus the transactional cascade delete."""

from __future__ import annotations

import logging

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from docpilot.config import Settings
from docpilot.database.mongo import create_client, ensure_indexes, get_database
from docpilot.repositories import (
    AnalysisResultRepository,
    ChatMessageRepository,
    CommitRepository,
    DocumentationSuggestionRepository,
    RepositoryRepository,
    Store,
)
from docpilot.repositories.interfaces import Identifier

logger = logging.getLogger(__name__)


class MongoStore(Store):
    """
    Store implementation over one MongoDB database.

    Cascade deletes run in a multi-document transaction, which requires a
    replica set (a single-node replica set is enough for development).
    """

    def __init__(self, client: AsyncMongoClient, db: AsyncDatabase):
        self.client = client
        self.db = db
        self.repositories = RepositoryRepository(db)
        self.commits = CommitRepository(db)
        self.suggestions = DocumentationSuggestionRepository(db)
        self.analysis_results = AnalysisResultRepository(db)
        self.chat_messages = ChatMessageRepository(db)

    @classmethod
    async def connect(cls, settings: Settings) -> "MongoStore":
        client = create_client(settings)
        db = get_database(client, settings)
        await ensure_indexes(db)
        return cls(client, db)

    async def delete_repository(self, repository_id: Identifier) -> bool:
        identifier = RepositoryRepository._to_object_id(repository_id)
        if identifier is None:
            return False

        async with self.client.start_session() as session:
            async with await session.start_transaction():
                repo_doc = await self.repositories.collection.find_one(
                    {"_id": identifier}, session=session
                )
                if repo_doc is None:
                    return False
                commits = await self.commits.delete_by_repository(identifier, session)
                suggestions = await self.suggestions.delete_by_repository(
                    identifier, session
                )
                results = await self.analysis_results.delete_by_repository(
                    identifier, session
                )
                await self.repositories.collection.delete_one(
                    {"_id": identifier}, session=session
                )

        logger.info(
            "Deleted repository %s (%d commits, %d suggestions, %d analysis results)",
            identifier,
            commits,
            suggestions,
            results,
        )
        return True

    async def ping(self) -> None:
        await self.db.command("ping")

    async def close(self) -> None:
        await self.client.close()

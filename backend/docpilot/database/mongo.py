"""
MongoDB connection helpers.
"""

from __future__ import annotations

import logging

from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from docpilot.config import Settings

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> AsyncMongoClient:
    """
    Build the process-wide client.

    Called once from application startup; the client is owned by the
    MongoStore and closed on shutdown. Datetimes come back tz-aware (UTC).
    """
    logger.info("Connecting to MongoDB database %s", settings.MONGODB_DB_NAME)
    return AsyncMongoClient(settings.MONGODB_URI, tz_aware=True)


def get_database(client: AsyncMongoClient, settings: Settings) -> AsyncDatabase:
    return client[settings.MONGODB_DB_NAME]


async def ensure_indexes(db: AsyncDatabase) -> None:
    """
    Create the indexes the storage invariants rely on.

    - commits: (repository_id, commit_hash) unique, the idempotency boundary
    - repositories: one active registration per full_name
    """
    await db.commits.create_index(
        [("repository_id", ASCENDING), ("commit_hash", ASCENDING)],
        unique=True,
        name="uniq_repository_commit_hash",
    )
    await db.commits.create_index(
        [("repository_id", ASCENDING), ("timestamp", DESCENDING)],
        name="repository_timeline",
    )
    await db.repositories.create_index(
        [("full_name", ASCENDING)],
        unique=True,
        partialFilterExpression={"is_active": True},
        name="uniq_active_full_name",
    )
    await db.repositories.create_index([("created_at", DESCENDING)])
    await db.documentation_suggestions.create_index(
        [("repository_id", ASCENDING), ("status", ASCENDING), ("created_at", DESCENDING)],
        name="suggestion_review_queue",
    )
    await db.analysis_results.create_index(
        [("repository_id", ASCENDING), ("type", ASCENDING), ("created_at", DESCENDING)],
    )
    await db.chat_messages.create_index([("created_at", DESCENDING)])

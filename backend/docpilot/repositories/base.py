"""Generic MongoDB repository shared by all collections."""

from __future__ import annotations

from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from docpilot.entities.base import BaseEntity
from docpilot.utils.datetime import utc_now

T = TypeVar("T", bound=BaseEntity)

SortSpec = Sequence[Tuple[str, int]]


class BaseRepository(Generic[T]):
    """Thin typed wrapper around one collection."""

    def __init__(self, db: AsyncDatabase, collection_name: str, model: Type[T]):
        self.db = db
        self.collection: AsyncCollection = db[collection_name]
        self.model = model

    @staticmethod
    def _to_object_id(value: str | ObjectId | None) -> Optional[ObjectId]:
        if value is None or isinstance(value, ObjectId):
            return value
        try:
            return ObjectId(value)
        except (InvalidId, TypeError):
            return None

    def _to_entity(self, document: Optional[Dict[str, Any]]) -> Optional[T]:
        if not document:
            return None
        return self.model.model_validate(document)

    async def find_by_id(
        self, entity_id: str | ObjectId, session: AsyncClientSession | None = None
    ) -> Optional[T]:
        identifier = self._to_object_id(entity_id)
        if identifier is None:
            return None
        return await self.find_one({"_id": identifier}, session=session)

    async def find_one(
        self, query: Dict[str, Any], session: AsyncClientSession | None = None
    ) -> Optional[T]:
        document = await self.collection.find_one(query, session=session)
        return self._to_entity(document)

    async def find_many(
        self,
        query: Dict[str, Any],
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[T]:
        cursor = self.collection.find(query)
        if sort:
            cursor = cursor.sort(list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        documents = await cursor.to_list(length=None)
        return [self.model.model_validate(doc) for doc in documents]

    async def insert_one(
        self, entity: T, session: AsyncClientSession | None = None
    ) -> T:
        document = entity.to_mongo()
        result = await self.collection.insert_one(document, session=session)
        return entity.model_copy(update={"id": result.inserted_id})

    async def update_one(
        self, entity_id: str | ObjectId, updates: Dict[str, Any]
    ) -> Optional[T]:
        """Apply a $set and return the updated entity (None when absent)."""
        identifier = self._to_object_id(entity_id)
        if identifier is None:
            return None
        payload = updates.copy()
        payload["updated_at"] = utc_now()
        document = await self.collection.find_one_and_update(
            {"_id": identifier},
            {"$set": payload},
            return_document=ReturnDocument.AFTER,
        )
        return self._to_entity(document)

    async def delete_by_repository(
        self, repository_id: ObjectId, session: AsyncClientSession | None = None
    ) -> int:
        result = await self.collection.delete_many(
            {"repository_id": repository_id}, session=session
        )
        return result.deleted_count

    async def count_matching(self, query: Dict[str, Any]) -> int:
        return await self.collection.count_documents(query)

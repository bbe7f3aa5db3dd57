"""Repository for DocumentationSuggestion entities."""

from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from docpilot.entities import DocumentationSuggestion

from .base import BaseRepository
from .interfaces import Identifier, SuggestionStore


class DocumentationSuggestionRepository(
    BaseRepository[DocumentationSuggestion], SuggestionStore
):
    def __init__(self, db: AsyncDatabase):
        super().__init__(db, "documentation_suggestions", DocumentationSuggestion)

    async def _insert(
        self, suggestion: DocumentationSuggestion
    ) -> DocumentationSuggestion:
        return await self.insert_one(suggestion)

    async def _apply_review(
        self, suggestion_id: Identifier, updates: Dict[str, Any]
    ) -> Optional[DocumentationSuggestion]:
        identifier = self._to_object_id(suggestion_id)
        if identifier is None:
            return None
        document = await self.collection.find_one_and_update(
            {"_id": identifier},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        return self._to_entity(document)

    async def get(self, suggestion_id: Identifier) -> Optional[DocumentationSuggestion]:
        return await self.find_by_id(suggestion_id)

    async def list(
        self,
        repository_id: Optional[Identifier] = None,
        status: Optional[str] = None,
    ) -> List[DocumentationSuggestion]:
        query: Dict[str, Any] = {}
        if repository_id is not None:
            query["repository_id"] = self._to_object_id(repository_id)
        if status:
            query["status"] = status
        return await self.find_many(query, sort=[("created_at", -1), ("_id", -1)])

    async def count(self, status: Optional[str] = None) -> int:
        return await self.count_matching({"status": status} if status else {})

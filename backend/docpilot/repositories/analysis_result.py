"""Repository for AnalysisResult audit records."""

from typing import Any, Dict, List, Optional

from pymongo.asynchronous.database import AsyncDatabase

from docpilot.entities import AnalysisResult

from .base import BaseRepository
from .interfaces import AnalysisResultStore, Identifier


class AnalysisResultRepository(BaseRepository[AnalysisResult], AnalysisResultStore):
    def __init__(self, db: AsyncDatabase):
        super().__init__(db, "analysis_results", AnalysisResult)

    async def create(self, result: AnalysisResult) -> AnalysisResult:
        return await self.insert_one(result)

    async def list(
        self,
        repository_id: Identifier,
        result_type: Optional[str] = None,
        limit: int = 50,
    ) -> List[AnalysisResult]:
        query: Dict[str, Any] = {"repository_id": self._to_object_id(repository_id)}
        if result_type:
            query["type"] = result_type
        return await self.find_many(
            query, sort=[("created_at", -1), ("_id", -1)], limit=limit
        )

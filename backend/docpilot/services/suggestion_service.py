"""Review queue for documentation suggestions."""

import logging
from typing import List, Optional

from docpilot.entities import DocumentationSuggestion
from docpilot.repositories.interfaces import Store

logger = logging.getLogger(__name__)


class SuggestionService:
    def __init__(self, store: Store):
        self.store = store

    async def list(
        self,
        repository_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[DocumentationSuggestion]:
        return await self.store.suggestions.list(
            repository_id=repository_id, status=status
        )

    async def review(
        self,
        suggestion_id: str,
        status: str,
        suggested_content: Optional[str] = None,
    ) -> DocumentationSuggestion:
        suggestion = await self.store.suggestions.update_status(
            suggestion_id, status, suggested_content
        )
        logger.info("Suggestion %s reviewed as %s", suggestion.id_str, suggestion.status)
        return suggestion

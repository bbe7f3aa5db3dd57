"""Analysis engine backed by an OpenAI-compatible chat completions API."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, List, Optional, Sequence

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from docpilot.config import settings
from docpilot.dtos.analysis import CommitAnalysis, ProcessImprovement, ReleaseNotes
from docpilot.services.analysis import prompts
from docpilot.services.analysis.engine import (
    FALLBACK_ANSWER,
    AnalysisEngine,
    CommitContext,
    DocContext,
)
from docpilot.services.pipeline_exceptions import AnalysisUnavailable

logger = logging.getLogger(__name__)


class LLMAnalysisEngine(AnalysisEngine):
    """
    Structured analysis through JSON-mode chat completions.

    Any endpoint speaking the OpenAI protocol works (Gemini exposes one,
    which is the default base URL). Without an API key every call raises
    AnalysisUnavailable, so ingestion keeps storing commits with no
    suggestions.
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        *,
        model: Optional[str] = None,
        chat_model: Optional[str] = None,
        timeout: Optional[float] = None,
        prompt_diff_max_chars: Optional[int] = None,
    ):
        if client is None and settings.LLM_API_KEY:
            client = AsyncOpenAI(
                api_key=settings.LLM_API_KEY,
                base_url=settings.LLM_BASE_URL,
                max_retries=0,
            )
        self.client = client
        self.model = model or settings.LLM_MODEL
        self.chat_model = chat_model or settings.LLM_CHAT_MODEL
        self.timeout = timeout or settings.EXTERNAL_CALL_TIMEOUT_SECONDS
        self.prompt_diff_max_chars = (
            prompt_diff_max_chars or settings.PROMPT_DIFF_MAX_CHARS
        )

    async def _complete(
        self, system_prompt: str, prompt: str, model: str, json_mode: bool
    ) -> str:
        if self.client is None:
            raise AnalysisUnavailable("LLM_API_KEY is not configured")

        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(**kwargs), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            raise AnalysisUnavailable(
                f"Analysis model timed out after {self.timeout}s"
            ) from exc
        except openai.OpenAIError as exc:
            raise AnalysisUnavailable(f"Analysis model request failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise AnalysisUnavailable("Empty response from analysis model")
        return content

    async def _complete_json(self, system_prompt: str, prompt: str) -> Any:
        raw = await self._complete(system_prompt, prompt, self.model, json_mode=True)
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise AnalysisUnavailable("Analysis model returned invalid JSON") from exc

    async def analyze_commit(
        self, message: str, diff: str, changed_files: Sequence[str]
    ) -> CommitAnalysis:
        prompt = prompts.build_commit_prompt(
            message, diff, changed_files, self.prompt_diff_max_chars
        )
        data = await self._complete_json(prompts.COMMIT_ANALYSIS_SYSTEM_PROMPT, prompt)
        try:
            return CommitAnalysis.model_validate(data)
        except ValidationError as exc:
            raise AnalysisUnavailable(
                f"Commit analysis did not match the expected shape: {exc.error_count()} errors"
            ) from exc
        except (TypeError, AttributeError) as exc:
            raise AnalysisUnavailable(f"Unusable commit analysis: {exc}") from exc

    async def detect_process_improvements(
        self, commits: Sequence[CommitContext], existing_docs: Sequence[DocContext]
    ) -> List[ProcessImprovement]:
        prompt = prompts.build_process_prompt(commits, existing_docs)
        data = await self._complete_json(
            prompts.PROCESS_IMPROVEMENT_SYSTEM_PROMPT, prompt
        )
        items = data.get("improvements", []) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise AnalysisUnavailable("Process improvements must be a list")
        try:
            return [ProcessImprovement.model_validate(item) for item in items]
        except (ValidationError, TypeError, AttributeError) as exc:
            raise AnalysisUnavailable("Malformed process improvement") from exc

    async def synthesize_release_notes(
        self, commits: Sequence[CommitContext], doc_updates: Sequence[DocContext]
    ) -> ReleaseNotes:
        prompt = prompts.build_release_notes_prompt(commits, doc_updates)
        data = await self._complete_json(prompts.RELEASE_NOTES_SYSTEM_PROMPT, prompt)
        try:
            return ReleaseNotes.model_validate(data)
        except (ValidationError, TypeError, AttributeError) as exc:
            raise AnalysisUnavailable("Malformed release notes") from exc

    async def answer_question(
        self,
        question: str,
        commits: Sequence[CommitContext],
        docs: Sequence[DocContext],
    ) -> str:
        prompt = prompts.build_question_prompt(question, commits, docs)
        try:
            return await self._complete(
                prompts.ASSISTANT_SYSTEM_PROMPT, prompt, self.chat_model, json_mode=False
            )
        except AnalysisUnavailable as exc:
            logger.warning("Failed to answer developer question: %s", exc)
            return FALLBACK_ANSWER

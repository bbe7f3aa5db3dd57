"""GitHub REST implementation of the change-source adapter."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import httpx

from docpilot.config import settings
from docpilot.services.change_source import (
    ChangeSource,
    CommitDetail,
    RepoLocator,
    RepositoryMetadata,
    SourceCommit,
)
from docpilot.services.github.exceptions import GithubAuthError, GithubRateLimitError
from docpilot.services.github.locator import parse_github_url
from docpilot.services.pipeline_exceptions import AdapterUnavailable
from docpilot.utils.datetime import parse_datetime
from docpilot.utils.text import truncate

logger = logging.getLogger(__name__)


def _to_source_commit(item: Dict[str, Any]) -> SourceCommit:
    commit = item.get("commit") or {}
    author = commit.get("author") or {}
    return SourceCommit(
        hash=item["sha"],
        message=commit.get("message", ""),
        author=author.get("name") or "Unknown",
        author_email=author.get("email") or "",
        timestamp=parse_datetime(author.get("date")),
    )


class GithubChangeSource(ChangeSource):
    """
    Talks to the GitHub REST API with a repository access token.

    Owns one ``httpx.AsyncClient``; use it as ``async with``.
    """

    provider = "github"
    requires_credential = True

    def __init__(
        self,
        access_token: Optional[str],
        *,
        api_url: Optional[str] = None,
        diff_max_chars: Optional[int] = None,
        detail_concurrency: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        self.diff_max_chars = diff_max_chars or settings.DIFF_MAX_CHARS
        self.call_timeout = timeout or settings.EXTERNAL_CALL_TIMEOUT_SECONDS
        self.detail_concurrency = max(
            1, detail_concurrency or settings.DETAIL_FETCH_CONCURRENCY
        )
        self._client = httpx.AsyncClient(
            base_url=(api_url or settings.GITHUB_API_URL).rstrip("/"),
            headers=headers,
            timeout=self.call_timeout,
            transport=transport,
        )

    @staticmethod
    def parse_locator(url: str) -> Optional[RepoLocator]:
        return parse_github_url(url)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _rest_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            raise AdapterUnavailable(f"GitHub request failed: {method} {path}: {exc}") from exc

        if response.status_code == 401:
            raise GithubAuthError(
                "GitHub token expired or revoked", status_code=response.status_code
            )
        if response.status_code in (403, 429) and (
            response.headers.get("X-RateLimit-Remaining") == "0"
            or "Retry-After" in response.headers
        ):
            retry_after = response.headers.get("Retry-After")
            raise GithubRateLimitError(
                f"GitHub rate limit hit on {path}",
                status_code=response.status_code,
                retry_after=float(retry_after) if retry_after else None,
            )
        if response.is_error:
            raise AdapterUnavailable(
                f"GitHub returned {response.status_code} for {method} {path}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise AdapterUnavailable(f"GitHub returned invalid JSON for {path}") from exc

    async def fetch_repository_metadata(self, owner: str, name: str) -> RepositoryMetadata:
        data = await self._rest_request("GET", f"/repos/{owner}/{name}")
        latest = await self._rest_request(
            "GET", f"/repos/{owner}/{name}/commits", params={"per_page": 1}
        )
        return RepositoryMetadata(
            display_name=data.get("name") or name,
            description=data.get("description") or "",
            canonical_url=data.get("html_url") or f"https://github.com/{owner}/{name}",
            latest_commit=_to_source_commit(latest[0]) if latest else None,
        )

    async def fetch_commit_detail(self, owner: str, name: str, sha: str) -> CommitDetail:
        data = await self._rest_request("GET", f"/repos/{owner}/{name}/commits/{sha}")
        files = data.get("files") or []
        if not files:
            return CommitDetail()
        diff = "\n".join(file.get("patch") or "" for file in files)
        return CommitDetail(
            files_changed=[file["filename"] for file in files if file.get("filename")],
            diff=truncate(diff, self.diff_max_chars),
        )

    async def fetch_commit_details(
        self, owner: str, name: str, hashes: Sequence[str]
    ) -> Dict[str, CommitDetail]:
        semaphore = asyncio.Semaphore(self.detail_concurrency)

        async def _detail_or_empty(sha: str) -> CommitDetail:
            async with semaphore:
                try:
                    return await asyncio.wait_for(
                        self.fetch_commit_detail(owner, name, sha),
                        timeout=self.call_timeout,
                    )
                except asyncio.TimeoutError:
                    logger.warning(
                        "Timed out after %ss getting commit info for %s/%s@%s",
                        self.call_timeout,
                        owner,
                        name,
                        sha,
                    )
                    return CommitDetail()
                except AdapterUnavailable as exc:
                    logger.warning(
                        "Failed to get detailed commit info for %s/%s@%s: %s",
                        owner,
                        name,
                        sha,
                        exc,
                    )
                    return CommitDetail()

        unique = list(dict.fromkeys(hashes))
        details = await asyncio.gather(*(_detail_or_empty(sha) for sha in unique))
        return dict(zip(unique, details))

    async def list_commits(
        self,
        owner: str,
        name: str,
        since: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[SourceCommit]:
        params: Dict[str, Any] = {"per_page": limit}
        if since is not None:
            params["since"] = since.astimezone(timezone.utc).isoformat().replace(
                "+00:00", "Z"
            )
        listing = await self._rest_request(
            "GET", f"/repos/{owner}/{name}/commits", params=params
        )
        if not isinstance(listing, list):
            raise AdapterUnavailable(f"Unexpected commit listing for {owner}/{name}")
        return [_to_source_commit(item) for item in listing]

    async def register_webhook(
        self, owner: str, name: str, callback_url: str, secret: str
    ) -> str:
        data = await self._rest_request(
            "POST",
            f"/repos/{owner}/{name}/hooks",
            json={
                "name": "web",
                "active": True,
                "events": ["push", "pull_request"],
                "config": {
                    "url": callback_url,
                    "content_type": "json",
                    "secret": secret,
                },
            },
        )
        return str(data["id"])


_PROVIDERS = {
    GithubChangeSource.provider: GithubChangeSource,
}


def supported_providers() -> List[str]:
    return sorted(_PROVIDERS)


def provider_class(provider: str) -> Optional[type]:
    return _PROVIDERS.get((provider or "").lower())


def create_change_source(provider: str, credential: Optional[str]) -> ChangeSource:
    """Default ChangeSourceFactory used by the application."""
    source_cls = provider_class(provider)
    if source_cls is None:
        raise AdapterUnavailable(f"Unsupported provider: {provider}")
    return source_cls(credential)

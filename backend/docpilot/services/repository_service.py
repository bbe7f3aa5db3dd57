"""Repository Registry: registration, lookup and removal of tracked repositories."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from docpilot.config import settings
from docpilot.entities import Repository
from docpilot.repositories.interfaces import Store
from docpilot.services.change_source import ChangeSourceFactory
from docpilot.services.github.client import provider_class, supported_providers
from docpilot.services.pipeline_exceptions import (
    AdapterUnavailable,
    InvalidLocator,
    MissingCredential,
    RepositoryAlreadyRegistered,
    RepositoryNotFound,
)

logger = logging.getLogger(__name__)


class RepositoryService:
    def __init__(
        self,
        store: Store,
        change_source_factory: ChangeSourceFactory,
        *,
        provider_lookup: Callable[[str], Optional[type]] = provider_class,
        webhook_callback_url: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        call_timeout: Optional[float] = None,
    ):
        self.store = store
        self.change_source_factory = change_source_factory
        self.provider_lookup = provider_lookup
        self.webhook_callback_url = webhook_callback_url
        self.webhook_secret = webhook_secret or settings.WEBHOOK_SECRET
        self.call_timeout = call_timeout or settings.EXTERNAL_CALL_TIMEOUT_SECONDS

    async def register(
        self,
        git_url: str,
        provider: str = "github",
        credential: Optional[str] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Repository:
        provider = (provider or "").lower()
        source_cls = self.provider_lookup(provider)
        if source_cls is None:
            raise InvalidLocator(
                git_url,
                reason=(
                    f"Unsupported provider '{provider}'; "
                    f"supported: {', '.join(supported_providers())}"
                ),
            )

        locator = source_cls.parse_locator(git_url)
        if locator is None:
            raise InvalidLocator(git_url)
        full_name = locator.full_name.lower()

        credential = (credential or "").strip() or None
        if source_cls.requires_credential and credential is None:
            raise MissingCredential(f"An access token is required for {provider}")

        if await self.store.repositories.find_active_by_full_name(full_name):
            raise RepositoryAlreadyRegistered(full_name)

        webhook_id = None
        async with self.change_source_factory(provider, credential) as source:
            try:
                metadata = await asyncio.wait_for(
                    source.fetch_repository_metadata(locator.owner, locator.name),
                    timeout=self.call_timeout,
                )
            except asyncio.TimeoutError as exc:
                raise AdapterUnavailable(
                    f"Timed out fetching metadata for {full_name}"
                ) from exc

            if self.webhook_callback_url:
                try:
                    webhook_id = await asyncio.wait_for(
                        source.register_webhook(
                            locator.owner,
                            locator.name,
                            self.webhook_callback_url,
                            self.webhook_secret,
                        ),
                        timeout=self.call_timeout,
                    )
                except (AdapterUnavailable, asyncio.TimeoutError) as exc:
                    logger.warning(
                        "Webhook registration failed for %s, continuing without it: %s",
                        full_name,
                        str(exc) or "timed out",
                    )

        repository = await self.store.repositories.insert(
            Repository(
                name=name or metadata.display_name or locator.name,
                description=description or metadata.description or None,
                git_url=git_url.strip(),
                full_name=full_name,
                provider=provider,
                credential=credential,
                webhook_id=webhook_id,
            )
        )
        logger.info(
            "Registered repository %s (%s) webhook=%s",
            repository.full_name,
            repository.id_str,
            webhook_id or "none",
        )
        return repository

    async def get(self, repository_id: str) -> Repository:
        repository = await self.store.repositories.get(repository_id)
        if repository is None:
            raise RepositoryNotFound(repository_id)
        return repository

    async def list(self, active_only: bool = False) -> List[Repository]:
        return await self.store.repositories.list(active_only=active_only)

    async def deactivate(self, repository_id: str) -> Repository:
        repository = await self.store.repositories.update_fields(
            repository_id, {"is_active": False}
        )
        if repository is None:
            raise RepositoryNotFound(repository_id)
        logger.info("Deactivated repository %s", repository.full_name)
        return repository

    async def delete(self, repository_id: str) -> None:
        """Remove a repository with its commits, suggestions and analysis results."""
        if not await self.store.delete_repository(repository_id):
            raise RepositoryNotFound(repository_id)

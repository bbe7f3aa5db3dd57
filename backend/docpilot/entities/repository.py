"""
Repository Entity - a remote Git repository registered for ingestion.

Holds the connection metadata the ingestion pipeline needs: where the
repository lives, which hosting provider serves it, the access token used to
talk to that provider, and the sync watermark.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field, SecretStr

from docpilot.entities.base import BaseEntity


class Repository(BaseEntity):
    """Registered repository. Owns its commits, suggestions and analysis results."""

    name: str = Field(..., description="Display name reported by the provider")
    description: Optional[str] = None

    git_url: str = Field(
        ...,
        description="Remote locator as given at registration (HTTPS or SSH form)",
    )
    full_name: str = Field(
        ...,
        description="Normalized owner/name, lower-cased. Used to match webhook payloads.",
    )
    provider: str = Field(default="github", description="Hosting provider tag")

    # Never logged and never returned by the API
    credential: Optional[SecretStr] = Field(default=None, repr=False)

    webhook_id: Optional[str] = None
    is_active: bool = True
    last_sync_at: Optional[datetime] = Field(
        default=None,
        description="Watermark: commits authored before this are assumed ingested",
    )

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0]

    @property
    def repo_name(self) -> str:
        return self.full_name.split("/", 1)[1]

    def credential_value(self) -> Optional[str]:
        if self.credential is None:
            return None
        return self.credential.get_secret_value() or None

    def to_mongo(self) -> Dict[str, Any]:
        document = super().to_mongo()
        document["credential"] = self.credential_value()
        return document

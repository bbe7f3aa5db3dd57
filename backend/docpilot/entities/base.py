"""Base entity shared by every document stored in MongoDB."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, Optional

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from docpilot.utils.datetime import utc_now


def _coerce_object_id(value: Any) -> Any:
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


PyObjectId = Annotated[ObjectId, BeforeValidator(_coerce_object_id)]

# Response-side: ObjectId rendered as its hex string
PyObjectIdStr = Annotated[str, BeforeValidator(str)]


class BaseEntity(BaseModel):
    """
    Common fields for all entities.

    ``id`` maps to Mongo's ``_id``. Entities built in memory start without an
    id; the storage layer assigns one on insert.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        use_enum_values=True,
        validate_default=True,
    )

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None

    @property
    def id_str(self) -> str:
        return str(self.id) if self.id is not None else ""

    def to_mongo(self) -> Dict[str, Any]:
        """Dump to a document suitable for insert_one."""
        document = self.model_dump(by_alias=True)
        if document.get("_id") is None:
            document.pop("_id", None)
        return document

"""
Build Record Model
==================
Pydantic model for the row written once per submitted document.

Fields:
    build_id     : opaque UUID, primary key of the record table
    project_id   : caller-supplied grouping id (not unique)
    status       : always "queued" when written; live status is derived, never stored
    title / slug : display metadata with service defaults
    created_at   : ISO-8601 UTC timestamp of the submission
    author_email : caller-supplied author or "unknown"
    file_size    : UTF-8 byte length of the submitted markdown
    ttl          : epoch seconds after which the store may expire the row

The record is immutable after creation. The store's wire format uses the
camelCase aliases (buildId, projectId, ...).
"""
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import DEFAULT_BUILD_STATUS


class BuildRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    build_id: str = Field(alias="buildId")
    project_id: str = Field(alias="projectId")
    status: str = DEFAULT_BUILD_STATUS
    title: Optional[str] = None
    slug: Optional[str] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    author_email: Optional[str] = Field(default=None, alias="authorEmail")
    file_size: Optional[int] = Field(default=None, alias="fileSize")
    ttl: Optional[int] = None

    def to_item(self) -> Dict[str, Any]:
        """Serialize to the store's item format (camelCase keys, no nulls)."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "BuildRecord":
        # boto3 hands numbers back as Decimal
        cleaned = {
            key: int(value) if isinstance(value, Decimal) else value
            for key, value in item.items()
        }
        return cls.model_validate(cleaned)

"""
POST /api/validate
Parses a markdown document's frontmatter, optionally checks it against a
JSON Schema fetched from schemaUrl, and returns a preview plus metrics.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from app.api.dependencies import get_validator
from app.api.responses import internal_error
from app.core.config import Settings, get_settings
from app.core.errors import ServiceError
from app.services.validator import MarkdownValidator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class ValidateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    markdown: Optional[str] = None
    schema_url: Optional[str] = Field(default=None, alias="schemaUrl")


@router.post("/validate")
async def validate_markdown(
    request: ValidateRequest,
    validator: MarkdownValidator = Depends(get_validator),
    settings: Settings = Depends(get_settings),
):
    try:
        return await validator.validate(request.markdown, request.schema_url)
    except ServiceError:
        raise
    except Exception as exc:
        return internal_error("Internal server error", exc, settings)

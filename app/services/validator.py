"""
Validator Service
=================
Turns raw markdown into either a full validity report or a structured
error, never a partial result.

Pipeline:
    1. Parse frontmatter          → 422 frontmatter-syntax on failure
    2. Fetch schema (optional)    → 400 schema-fetch on failure
    3. Validate frontmatter       → 422 schema-violation with every error
    4. Render preview + metrics   → 200 status "valid"
"""
import logging
from typing import Any, Dict, Optional

import httpx

from app.core.errors import (
    FRONTMATTER_SYNTAX,
    SCHEMA_VIOLATION,
    BadRequestError,
    UnprocessableError,
)
from app.parser.frontmatter import FrontmatterSyntaxError, parse_frontmatter
from app.services.content_metrics import compute_metrics
from app.services.markdown_renderer import render_preview
from app.services.schema_validator import fetch_schema, validate_frontmatter

logger = logging.getLogger(__name__)


class MarkdownValidator:
    """Validates a markdown document and its frontmatter."""

    def __init__(
        self,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.transport = transport

    async def validate(self, markdown: Optional[str], schema_url: Optional[str] = None) -> Dict[str, Any]:
        if not markdown:
            raise BadRequestError("Missing markdown content")

        try:
            document = parse_frontmatter(markdown)
        except FrontmatterSyntaxError as exc:
            raise UnprocessableError(FRONTMATTER_SYNTAX, [{
                "path": "frontmatter",
                "message": "Invalid YAML frontmatter syntax",
                "line": exc.line,
                "details": str(exc),
            }]) from exc

        if schema_url:
            schema = await fetch_schema(schema_url, timeout=self.timeout, transport=self.transport)
            issues = validate_frontmatter(schema, document.frontmatter)
            if issues:
                logger.info("Frontmatter rejected by %s with %d error(s)", schema_url, len(issues))
                raise UnprocessableError(
                    SCHEMA_VIOLATION,
                    [issue.model_dump() for issue in issues],
                )

        metrics = compute_metrics(document.content)
        return {
            "status": "valid",
            "frontmatter": document.frontmatter,
            "content": document.content,
            "preview": render_preview(document.content),
            "metadata": metrics.model_dump(by_alias=True),
        }

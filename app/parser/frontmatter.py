"""
Frontmatter Parser
==================
Splits a markdown document into its leading YAML metadata block and body.

Rules:
    - The block opens only if the first line is exactly "---" (a UTF-8 BOM
      is ignored).
    - It closes at the next line that is exactly "---". Without a closing
      delimiter the rest of the document is treated as metadata and the
      body is empty.
    - Empty metadata yields {}. Anything that is not a YAML mapping, and any
      YAML error, raises FrontmatterSyntaxError.
    - YAML dates and timestamps come back as ISO-8601 strings so the result
      can be checked against a JSON Schema and echoed as JSON unchanged.
"""
import datetime
import logging
from typing import Any, Optional, Tuple

import yaml

from app.models.document import ParsedDocument

logger = logging.getLogger(__name__)

DELIMITER = "---"


class FrontmatterSyntaxError(ValueError):
    """Raised when the metadata block cannot be parsed into a mapping."""

    def __init__(self, message: str, line: int = 1) -> None:
        super().__init__(message)
        self.line = line


def _split(text: str) -> Tuple[Optional[str], str]:
    """Return (raw_yaml, body); raw_yaml is None when there is no block."""
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != DELIMITER:
        return None, text

    for idx in range(1, len(lines)):
        if lines[idx].rstrip("\r\n") == DELIMITER:
            return "".join(lines[1:idx]), "".join(lines[idx + 1:])

    return "".join(lines[1:]), ""


def _normalise(value: Any) -> Any:
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _normalise(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_normalise(v) for v in value]
    return value


def parse_frontmatter(text: str) -> ParsedDocument:
    """
    Parse a markdown document into frontmatter and content.

    Parameters
    ----------
    text : str
        Full document, including the metadata block if present.

    Returns
    -------
    ParsedDocument
        Metadata mapping and body text.

    Raises
    ------
    FrontmatterSyntaxError
        If the metadata block is not valid YAML or not a mapping.
    """
    raw, body = _split(text)
    if raw is None or not raw.strip():
        return ParsedDocument(frontmatter={}, content=body)

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        line = 1
        mark = getattr(exc, "problem_mark", None)
        if mark is not None:
            # +1 for 1-based lines, +1 for the opening delimiter
            line = mark.line + 2
        logger.debug("Frontmatter YAML error at line %d: %s", line, exc)
        raise FrontmatterSyntaxError(str(exc), line=line) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterSyntaxError(
            f"Frontmatter must be a mapping, got {type(data).__name__}"
        )

    return ParsedDocument(frontmatter=_normalise(data), content=body)

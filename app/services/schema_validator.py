"""
Schema Validator
================
Fetches caller-supplied JSON Schemas and checks frontmatter against them.

Fetch vs. validation:
    A schema that cannot be fetched, decoded or compiled raises
    SchemaFetchError before any content is checked. A schema that compiles
    but rejects the frontmatter yields a list of ValidationIssue objects.

Error reporting:
    Every violation is returned, never just the first. Each issue carries a
    JSON pointer to the offending field ("/title") or, when the violation
    sits on the document root (e.g. a missing required property), the
    schema path ("#/required"), plus the failing keyword and its params.
"""
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from jsonschema import Draft7Validator, FormatChecker
from jsonschema.exceptions import SchemaError, ValidationError
from jsonschema.validators import validator_for

from app.core.errors import SchemaFetchError
from app.models.document import ValidationIssue

logger = logging.getLogger(__name__)

_REQUIRED_MSG_RE = re.compile(r"^(['\"])(?P<name>.*)\1 is a required property$")


async def fetch_schema(
    schema_url: str,
    timeout: float = 20.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Download a JSON Schema document.

    Raises
    ------
    SchemaFetchError
        On transport failure, non-2xx status, or a body that is not a JSON object.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.get(schema_url)
            if not response.is_success:
                raise SchemaFetchError(
                    "Failed to fetch schema",
                    {"details": f"Schema fetch failed: {response.status_code}"},
                )
            schema = response.json()
    except SchemaFetchError:
        raise
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Schema fetch from %s failed: %s", schema_url, exc)
        raise SchemaFetchError("Failed to fetch schema", {"details": str(exc)}) from exc

    if not isinstance(schema, dict):
        raise SchemaFetchError(
            "Failed to fetch schema",
            {"details": "Schema document must be a JSON object"},
        )
    return schema


def compile_schema(schema: Dict[str, Any]):
    """Return a validator instance for the schema, Draft 7 when $schema is absent."""
    cls = validator_for(schema, default=Draft7Validator)
    try:
        cls.check_schema(schema)
    except SchemaError as exc:
        raise SchemaFetchError("Invalid schema", {"details": exc.message}) from exc
    return cls(schema, format_checker=FormatChecker())


def _issue_path(error: ValidationError) -> str:
    if error.absolute_path:
        return "/" + "/".join(str(part) for part in error.absolute_path)
    return "#/" + "/".join(str(part) for part in error.absolute_schema_path)


def _issue_params(error: ValidationError) -> Dict[str, Any]:
    if error.validator == "required":
        match = _REQUIRED_MSG_RE.match(error.message)
        if match:
            return {"missingProperty": match.group("name")}
    return {"expected": error.validator_value}


def to_issue(error: ValidationError) -> ValidationIssue:
    return ValidationIssue(
        path=_issue_path(error),
        message=error.message,
        keyword=str(error.validator),
        params=_issue_params(error),
    )


def validate_frontmatter(schema: Dict[str, Any], frontmatter: Dict[str, Any]) -> List[ValidationIssue]:
    """Check frontmatter against a schema. Returns [] when valid."""
    validator = compile_schema(schema)
    return [to_issue(error) for error in validator.iter_errors(frontmatter)]

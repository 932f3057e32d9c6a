"""
Errors
======
Error taxonomy shared by the HTTP layer and the services.

    bad-request           400  malformed or missing input
    unprocessable         422  frontmatter syntax or schema violation
    not-found             404  unknown build id
    method-not-allowed    405
    upstream-unavailable  -    best-effort dependency failed (never raised to clients)
    internal              500  unexpected failure

ServiceError subclasses are rendered by the exception handler in main.py as
{"error": message, **payload}.
"""
from typing import Any, Dict, Optional

BAD_REQUEST = "bad-request"
UNPROCESSABLE = "unprocessable"
NOT_FOUND = "not-found"
METHOD_NOT_ALLOWED = "method-not-allowed"
UPSTREAM_UNAVAILABLE = "upstream-unavailable"
INTERNAL = "internal"

FRONTMATTER_SYNTAX = "frontmatter-syntax"
SCHEMA_VIOLATION = "schema-violation"
SCHEMA_FETCH = "schema-fetch"


class ServiceError(Exception):
    status_code = 500
    kind = INTERNAL

    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload or {}

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.message, **self.payload}


class BadRequestError(ServiceError):
    status_code = 400
    kind = BAD_REQUEST


class SchemaFetchError(BadRequestError):
    """The caller-supplied schema could not be fetched, parsed or compiled."""
    kind = SCHEMA_FETCH


class UnprocessableError(ServiceError):
    status_code = 422
    kind = UNPROCESSABLE

    def __init__(self, kind: str, errors: list) -> None:
        super().__init__("Validation failed", {"status": "invalid", "errors": errors})
        self.kind = kind
        self.errors = errors

    def to_body(self) -> Dict[str, Any]:
        # Validation failures carry no top-level message beyond the error list
        return {"error": self.kind, **self.payload}


class NotFoundError(ServiceError):
    status_code = 404
    kind = NOT_FOUND


class ConfigurationError(ServiceError):
    """A required setting is missing for a required step."""


class UpstreamError(ServiceError):
    """An external API (GitHub, schema host) answered with an error."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class StoreError(Exception):
    """The build record backend failed; callers treat this as best-effort."""

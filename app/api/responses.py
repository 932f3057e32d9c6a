"""
Response helpers shared by the API routers.
"""
import logging
import traceback

from fastapi.responses import JSONResponse

from app.core.config import Settings

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


def internal_error(label: str, exc: Exception, settings: Settings) -> JSONResponse:
    """500 body: {"error": label, "message": str(exc)} plus the stack in development."""
    logger.error("%s: %s", label, exc, exc_info=True)
    body = {"error": label, "message": str(exc)}
    if settings.is_development:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content=body, headers=CORS_HEADERS)

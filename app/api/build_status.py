"""
GET /api/build/{build_id}/status
Polled by clients after POST /api/build. Merges the stored build record
with the live GitHub Actions run for build/<build_id>.
"""
import logging

from fastapi import APIRouter, Depends

from app.api.dependencies import get_reconciler
from app.api.responses import internal_error
from app.core.config import Settings, get_settings
from app.core.errors import BadRequestError, ServiceError
from app.services.status_reconciler import StatusReconciler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/build/{build_id}/status")
async def build_status(
    build_id: str,
    reconciler: StatusReconciler = Depends(get_reconciler),
    settings: Settings = Depends(get_settings),
):
    try:
        report = await reconciler.status(build_id)
    except ServiceError:
        raise
    except Exception as exc:
        return internal_error("Status check failed", exc, settings)
    return report.to_response()


@router.get("/build//status", include_in_schema=False)
async def build_status_missing_id():
    raise BadRequestError("Build ID required")

"""
POST /api/build
Accepts a validated document and a project id, commits the document to a
new build/<buildId> branch and triggers the site build. Answers 202 with a
polling URL; the build itself runs in GitHub Actions.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from app.api.dependencies import get_dispatcher
from app.api.responses import internal_error
from app.core.config import Settings, get_settings
from app.core.errors import BadRequestError
from app.services.build_dispatcher import BuildDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class BuildRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    markdown: Optional[str] = None
    project_id: Optional[str] = Field(default=None, alias="projectId")
    metadata: Optional[Dict[str, Any]] = None


@router.post("/build", status_code=202)
async def trigger_build(
    body: BuildRequest,
    request: Request,
    dispatcher: BuildDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
):
    try:
        result = await dispatcher.dispatch(
            markdown=body.markdown,
            project_id=body.project_id,
            metadata=body.metadata,
            base_url=str(request.base_url),
        )
    except BadRequestError:
        raise
    except Exception as exc:
        # Repository, branch or commit failure
        return internal_error("Build trigger failed", exc, settings)

    return JSONResponse(status_code=202, content=result.to_response())

"""
Status Reconciler
=================
Answers "where is build X?" by merging the stored BuildRecord with the
live GitHub Actions run on build/<buildId>.

    - No record                → 404, even if a matching run exists
    - Store lookup fails       → treated as no record (logged)
    - Run listing fails        → workflow status "unknown" (logged)
    - Unconfigured URL pieces  → null, never omitted

The stored record is never updated; the live status exists only in the
response.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from app.agents.ci_monitor import CIMonitor, reconcile_status
from app.core.config import Settings
from app.core.constants import WORKFLOW_STATUS_UNKNOWN, branch_name_for
from app.core.errors import BadRequestError, NotFoundError, StoreError, UpstreamError
from app.models.build_record import BuildRecord
from app.models.side_effect import SideEffect
from app.models.workflow_run import WorkflowRun
from app.services.build_store import BuildStore

logger = logging.getLogger(__name__)


@dataclass
class StatusReport:
    record: BuildRecord
    status: str
    run: Optional[WorkflowRun]
    urls: Dict[str, Optional[str]]
    side_effects: Dict[str, SideEffect] = field(default_factory=dict)

    def to_response(self) -> Dict[str, Any]:
        record = self.record
        return {
            "buildId": record.build_id,
            "projectId": record.project_id,
            "status": self.status,
            "title": record.title,
            "slug": record.slug,
            "createdAt": record.created_at,
            "authorEmail": record.author_email,
            "fileSize": record.file_size,
            "workflow": {
                "status": self.run.status if self.run else WORKFLOW_STATUS_UNKNOWN,
                "conclusion": self.run.conclusion if self.run else None,
                "url": self.run.html_url if self.run else None,
            },
            "urls": self.urls,
        }


def build_urls(settings: Settings, record: BuildRecord) -> Dict[str, Optional[str]]:
    return {
        "site": f"{settings.site_url}/{record.project_id}/" if settings.site_url else None,
        "download": f"{settings.service_url}/download/{record.build_id}" if settings.service_url else None,
        "archive": (
            f"s3://{settings.archive_bucket}/archives/{record.project_id}/{record.build_id}/"
            if settings.archive_bucket else None
        ),
    }


class StatusReconciler:
    """Produces one status for a build from its record and its workflow run."""

    def __init__(
        self,
        settings: Settings,
        store: BuildStore,
        ci_monitor: Optional[CIMonitor] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.ci_monitor = ci_monitor
        if self.ci_monitor is None and settings.github_configured:
            self.ci_monitor = CIMonitor(
                owner=settings.github_owner,
                repo=settings.github_repo,
                github_token=settings.github_token,
                api_url=settings.github_api_url,
                timeout=settings.http_timeout_seconds,
            )

    async def _lookup(self, build_id: str) -> tuple:
        try:
            record = await asyncio.to_thread(self.store.get, build_id)
        except StoreError as exc:
            logger.warning("[BUILD:%s] Record lookup failed: %s", build_id, exc)
            return None, SideEffect.degrade(str(exc))
        return record, SideEffect.success()

    async def _workflow_run(self, build_id: str) -> tuple:
        if self.ci_monitor is None:
            return None, SideEffect.degrade("GitHub not configured")
        try:
            run = await self.ci_monitor.find_run_for_branch(
                branch_name_for(build_id),
                per_page=self.settings.workflow_runs_page_size,
            )
        except UpstreamError as exc:
            logger.warning("[BUILD:%s] GitHub workflow query failed: %s", build_id, exc)
            return None, SideEffect.degrade(str(exc))
        return run, SideEffect.success()

    async def status(self, build_id: Optional[str]) -> StatusReport:
        if not build_id or not build_id.strip():
            raise BadRequestError("Build ID required")

        record, lookup = await self._lookup(build_id)
        if record is None:
            raise NotFoundError("Build not found")

        run, workflow = await self._workflow_run(build_id)
        final_status = reconcile_status(record.status, run)
        logger.info(
            "[BUILD:%s] stored=%s workflow=%s → %s",
            build_id, record.status, run.status if run else WORKFLOW_STATUS_UNKNOWN, final_status,
        )

        return StatusReport(
            record=record,
            status=final_status,
            run=run,
            urls=build_urls(self.settings, record),
            side_effects={"record": lookup, "workflow": workflow},
        )

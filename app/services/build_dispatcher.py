"""
Build Dispatcher
================
Registers a build attempt and hands it to GitHub Actions. Returns as soon
as the content is committed; the build itself runs elsewhere.

Steps (required steps abort the request, best-effort steps degrade):
    1. New buildId, branch build/<buildId>
    2. Persist BuildRecord(status=queued)           best-effort
    3. Resolve base branch head                     required
    4. Create build branch                          required
    5. Look up existing content file SHA            absence is fine
    6. Commit content/<projectId>/<slug>.md         required
    7. Dispatch build workflow                      best-effort
       (the branch push usually triggers CI on its own)

No deduplication: identical submissions produce distinct builds.
"""
import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.agents.git_agent import GitAgent
from app.core.config import Settings
from app.core.constants import (
    DEFAULT_SLUG,
    DEFAULT_TITLE,
    RECORD_TTL_SECONDS,
    UNKNOWN_AUTHOR,
    branch_name_for,
    content_path_for,
)
from app.core.errors import BadRequestError, ConfigurationError, UpstreamError
from app.models.build_record import BuildRecord
from app.models.side_effect import SideEffect
from app.services.build_store import BuildStore

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    build_id: str
    project_id: str
    branch_name: str
    file_path: str
    title: str
    slug: str
    created_at: str
    polling_url: str
    estimated_time: int
    side_effects: Dict[str, SideEffect] = field(default_factory=dict)

    def to_response(self) -> Dict[str, Any]:
        return {
            "status": "queued",
            "buildId": self.build_id,
            "projectId": self.project_id,
            "branchName": self.branch_name,
            "filePath": self.file_path,
            "estimatedTime": self.estimated_time,
            "pollingUrl": self.polling_url,
            "metadata": {
                "title": self.title,
                "slug": self.slug,
                "createdAt": self.created_at,
            },
        }


def _check_segment(name: str, value: str) -> None:
    if "/" in value or "\\" in value or ".." in value or not value.strip():
        raise BadRequestError(f"Invalid {name}: must be a single path segment")


STRING_METADATA_FIELDS = ("title", "slug", "author", "authorName")


def _check_metadata(metadata: Any) -> Dict[str, Any]:
    if metadata is None:
        return {}
    if not isinstance(metadata, dict):
        raise BadRequestError("Invalid metadata: must be an object")
    for key in STRING_METADATA_FIELDS:
        value = metadata.get(key)
        if value is not None and not isinstance(value, str):
            raise BadRequestError(f"Invalid metadata.{key}: must be a string")
    return metadata


class BuildDispatcher:
    """Commits a document to a fresh branch and triggers its build."""

    def __init__(
        self,
        settings: Settings,
        store: BuildStore,
        git_agent: Optional[GitAgent] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.git_agent = git_agent

    def _agent(self) -> GitAgent:
        if self.git_agent is not None:
            return self.git_agent
        if not self.settings.github_configured:
            raise ConfigurationError(
                "GitHub configuration missing: GITHUB_ORG and GITHUB_REPO required"
            )
        self.git_agent = GitAgent(
            owner=self.settings.github_owner,
            repo=self.settings.github_repo,
            github_token=self.settings.github_token,
            api_url=self.settings.github_api_url,
            timeout=self.settings.http_timeout_seconds,
        )
        return self.git_agent

    async def dispatch(
        self,
        markdown: Optional[str],
        project_id: Optional[str],
        metadata: Optional[Dict[str, Any]] = None,
        base_url: str = "",
    ) -> DispatchResult:
        if not markdown or not project_id:
            raise BadRequestError("Missing required fields: markdown, projectId")

        metadata = _check_metadata(metadata)
        slug = metadata.get("slug") or DEFAULT_SLUG
        title = metadata.get("title") or DEFAULT_TITLE
        author_email = metadata.get("author")
        _check_segment("projectId", project_id)
        _check_segment("slug", slug)

        # --- 1. Identity ---
        build_id = str(uuid.uuid4())
        branch_name = branch_name_for(build_id)
        created_at = datetime.now(timezone.utc).isoformat()
        file_path = content_path_for(project_id, slug)
        side_effects: Dict[str, SideEffect] = {}

        logger.info("[BUILD:%s] Starting build for project %s", build_id, project_id)

        # --- 2. Record (best-effort) ---
        record = BuildRecord(
            build_id=build_id,
            project_id=project_id,
            status="queued",
            created_at=created_at,
            author_email=author_email or UNKNOWN_AUTHOR,
            title=title,
            slug=slug,
            file_size=len(markdown.encode("utf-8")),
            ttl=int(time.time()) + RECORD_TTL_SECONDS,
        )
        persisted = await asyncio.to_thread(self.store.save, record)
        if persisted.degraded:
            logger.warning("[BUILD:%s] Continuing without build record: %s", build_id, persisted.reason)
        side_effects["persist"] = persisted

        # --- 3-6. Branch + commit (required) ---
        agent = self._agent()
        base_sha = await agent.get_branch_sha(self.settings.github_base_branch)
        await agent.create_branch(branch_name, base_sha)

        existing_sha = await agent.get_file_sha(file_path, ref=branch_name)
        await agent.put_file(
            path=file_path,
            content=markdown,
            message=f"build: {title} [{build_id}]",
            branch=branch_name,
            author_name=metadata.get("authorName") or self.settings.service_author_name,
            author_email=author_email or self.settings.service_author_email,
            sha=existing_sha,
        )
        logger.info("[BUILD:%s] Committed file: %s", build_id, file_path)

        # --- 7. Workflow dispatch (best-effort) ---
        try:
            await agent.dispatch_workflow(
                self.settings.build_workflow_id,
                ref=branch_name,
                inputs={"buildId": build_id, "projectId": project_id},
            )
            side_effects["dispatch"] = SideEffect.success()
        except UpstreamError as exc:
            logger.error("[BUILD:%s] Workflow dispatch failed: %s", build_id, exc)
            side_effects["dispatch"] = SideEffect.degrade(str(exc))

        service_url = self.settings.service_url or base_url.rstrip("/")
        return DispatchResult(
            build_id=build_id,
            project_id=project_id,
            branch_name=branch_name,
            file_path=file_path,
            title=title,
            slug=slug,
            created_at=created_at,
            polling_url=f"{service_url}/api/build/{build_id}/status",
            estimated_time=self.settings.estimated_build_minutes,
            side_effects=side_effects,
        )

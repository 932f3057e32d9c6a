"""
CI Monitor Agent
================
Reads GitHub Actions workflow runs and reconciles them with stored build
records.

The only join key between a build record and its run is the branch name
build/<buildId>. A run on a renamed or missing branch is simply not found
and leaves the workflow status "unknown".
"""
import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from app.core.constants import DEFAULT_BUILD_STATUS
from app.core.errors import UpstreamError
from app.models.workflow_run import WorkflowRun

logger = logging.getLogger(__name__)


class CIMonitor:
    """
    Agent that reports the state of build workflows on GitHub.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        github_token: str = "",
        api_url: str = "https://api.github.com",
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "Content-Build-Service",
        }
        if github_token:
            self.headers["Authorization"] = f"token {github_token}"

    async def list_workflow_runs(self, per_page: int = 50) -> List[WorkflowRun]:
        """Return the most recent workflow runs for the repository, newest first."""
        url = f"{self.api_url}/repos/{self.owner}/{self.repo}/actions/runs"
        async with httpx.AsyncClient(
            headers=self.headers, timeout=self.timeout, transport=self.transport
        ) as client:
            try:
                response = await client.get(url, params={"per_page": per_page})
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                raise UpstreamError(
                    f"Workflow run listing returned {exc.response.status_code}",
                    status=exc.response.status_code,
                ) from exc
            except httpx.HTTPError as exc:
                raise UpstreamError(f"Workflow run listing failed: {exc}") from exc
            except ValueError as exc:
                raise UpstreamError(f"Workflow run listing is not JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise UpstreamError("Workflow run listing is not a JSON object")
        runs = data.get("workflow_runs", [])
        if not isinstance(runs, list):
            raise UpstreamError("Workflow run listing has no workflow_runs array")
        try:
            return [WorkflowRun.from_api(run) for run in runs if isinstance(run, dict)]
        except ValidationError as exc:
            raise UpstreamError(f"Workflow run listing has malformed runs: {exc}") from exc

    async def find_run_for_branch(self, branch: str, per_page: int = 50) -> Optional[WorkflowRun]:
        runs = await self.list_workflow_runs(per_page=per_page)
        return select_latest_run(runs, branch)


def select_latest_run(runs: List[WorkflowRun], branch: str) -> Optional[WorkflowRun]:
    """
    Pick the most recent run on a branch.

    GitHub lists runs newest first; created_at breaks ties when the list
    arrives in another order.
    """
    matches = [run for run in runs if run.head_branch == branch]
    if not matches:
        return None
    if all(run.created_at for run in matches):
        return max(matches, key=lambda run: run.created_at)
    return matches[0]


def reconcile_status(stored_status: Optional[str], run: Optional[WorkflowRun]) -> str:
    """
    Merge a stored build status with the live workflow state.

    completed + success   → completed
    completed + other     → failed
    in_progress           → building
    anything else / none  → the stored status (queued when absent)
    """
    if run is not None and run.status == "completed":
        return "completed" if run.conclusion == "success" else "failed"
    if run is not None and run.status == "in_progress":
        return "building"
    return stored_status or DEFAULT_BUILD_STATUS

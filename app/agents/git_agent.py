"""
Git Agent
=========
Handles repository operations against the GitHub REST API: resolving the
base branch, cutting build branches, and committing content files.

All calls go through httpx. Any non-2xx answer is raised as UpstreamError
carrying the HTTP status, except where a 404 has a defined meaning (a file
that does not exist yet).
"""
import base64
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from app.core.errors import UpstreamError

logger = logging.getLogger(__name__)


class GitAgent:
    """
    Agent responsible for writing build content to a remote repository.
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

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.api_url}{self.repo_path}{path}"
        async with httpx.AsyncClient(
            headers=self.headers, timeout=self.timeout, transport=self.transport
        ) as client:
            try:
                response = await client.request(method, url, **kwargs)
            except httpx.HTTPError as exc:
                raise UpstreamError(f"GitHub request failed: {method} {path}: {exc}") from exc

        if response.is_error:
            raise UpstreamError(
                f"GitHub {method} {path} returned {response.status_code}: {_error_message(response)}",
                status=response.status_code,
            )
        return response

    async def get_branch_sha(self, branch: str) -> str:
        """Return the commit SHA at the head of a branch."""
        response = await self._request("GET", f"/git/ref/heads/{branch}")
        sha = response.json()["object"]["sha"]
        logger.info("Resolved %s at %s", branch, sha[:7])
        return sha

    async def create_branch(self, branch: str, sha: str) -> None:
        """Create refs/heads/<branch> pointing at sha. Fails if it exists."""
        await self._request("POST", "/git/refs", json={"ref": f"refs/heads/{branch}", "sha": sha})
        logger.info("Created branch: %s", branch)

    async def get_file_sha(self, path: str, ref: str) -> Optional[str]:
        """
        Return the blob SHA of an existing file, or None when absent.

        The SHA is what the contents API requires to overwrite a tracked file.
        """
        try:
            response = await self._request("GET", _contents_path(path), params={"ref": ref})
        except UpstreamError as exc:
            if exc.status != 404:
                logger.warning("Could not check for existing %s on %s: %s", path, ref, exc)
            return None

        data = response.json()
        if isinstance(data, dict):
            return data.get("sha")
        # A directory listing means there is no file at this exact path
        return None

    async def put_file(
        self,
        path: str,
        content: str,
        message: str,
        branch: str,
        author_name: str,
        author_email: str,
        sha: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create or update a file on a branch as a single commit."""
        body: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
            "author": {"name": author_name, "email": author_email},
        }
        if sha:
            body["sha"] = sha
        response = await self._request("PUT", _contents_path(path), json=body)
        logger.info("Committed %s to %s", path, branch)
        return response.json()

    async def dispatch_workflow(self, workflow_id: str, ref: str, inputs: Dict[str, str]) -> None:
        """Ask GitHub Actions to run a workflow against a branch."""
        await self._request(
            "POST",
            f"/actions/workflows/{workflow_id}/dispatches",
            json={"ref": ref, "inputs": inputs},
        )
        logger.info("Dispatched workflow %s on %s", workflow_id, ref)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text[:200]


def _contents_path(path: str) -> str:
    # "#", "?" and "%" are legal in file names but not in a raw URL path
    return "/contents/" + quote(path, safe="/")

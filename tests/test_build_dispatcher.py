"""
Build Dispatcher Tests
======================
GitHub calls are mocked on the GitAgent; the record store is an in-test fake.
"""
import asyncio

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from app.agents.git_agent import GitAgent
from app.core.config import Settings
from app.core.errors import BadRequestError, ConfigurationError, UpstreamError
from app.models.side_effect import SideEffect
from app.services.build_dispatcher import BuildDispatcher
from app.services.build_store import BuildStore, NoOpBuildStore

MARKDOWN = "---\ntitle: Guide\n---\n# Guide\n"


class MemoryStore(BuildStore):
    def __init__(self):
        self.records = {}

    def save(self, record):
        self.records[record.build_id] = record
        return SideEffect.success()

    def get(self, build_id):
        return self.records.get(build_id)


@pytest.fixture
def settings():
    return Settings(github_owner="org", github_repo="site", service_url="https://svc.example.com")


@pytest.fixture
def git_agent():
    agent = MagicMock(spec=GitAgent)
    agent.get_branch_sha = AsyncMock(return_value="basesha")
    agent.create_branch = AsyncMock()
    agent.get_file_sha = AsyncMock(return_value=None)
    agent.put_file = AsyncMock(return_value={})
    agent.dispatch_workflow = AsyncMock()
    return agent


def test_dispatch_commits_to_build_branch(settings, git_agent):
    store = MemoryStore()
    dispatcher = BuildDispatcher(settings, store, git_agent=git_agent)

    result = asyncio.run(dispatcher.dispatch(
        MARKDOWN, "handbook", {"title": "Guide", "slug": "guide", "author": "ada@example.com"},
    ))

    assert result.branch_name == f"build/{result.build_id}"
    assert result.file_path == "content/handbook/guide.md"
    assert result.polling_url == f"https://svc.example.com/api/build/{result.build_id}/status"

    git_agent.get_branch_sha.assert_awaited_once_with("main")
    git_agent.create_branch.assert_awaited_once_with(result.branch_name, "basesha")
    git_agent.get_file_sha.assert_awaited_once_with("content/handbook/guide.md", ref=result.branch_name)

    put = git_agent.put_file.await_args.kwargs
    assert put["content"] == MARKDOWN
    assert put["branch"] == result.branch_name
    assert put["message"] == f"build: Guide [{result.build_id}]"
    assert put["author_email"] == "ada@example.com"
    assert put["author_name"] == settings.service_author_name
    assert put["sha"] is None

    git_agent.dispatch_workflow.assert_awaited_once_with(
        "build.yml", ref=result.branch_name,
        inputs={"buildId": result.build_id, "projectId": "handbook"},
    )


def test_record_written_as_queued(settings, git_agent):
    store = MemoryStore()
    result = asyncio.run(BuildDispatcher(settings, store, git_agent=git_agent).dispatch(MARKDOWN, "handbook"))

    record = store.records[result.build_id]
    assert record.status == "queued"
    assert record.project_id == "handbook"
    assert record.title == "Untitled"
    assert record.slug == "index"
    assert record.author_email == "unknown"
    assert record.file_size == len(MARKDOWN.encode("utf-8"))
    assert record.ttl > 0
    assert result.side_effects["persist"].ok


def test_response_shape(settings, git_agent):
    result = asyncio.run(BuildDispatcher(settings, MemoryStore(), git_agent=git_agent).dispatch(MARKDOWN, "p"))
    body = result.to_response()

    assert body["status"] == "queued"
    assert body["estimatedTime"] == 5
    assert body["filePath"] == "content/p/index.md"
    assert set(body["metadata"]) == {"title", "slug", "createdAt"}
    assert body["metadata"]["createdAt"] == result.created_at


def test_existing_file_is_updated(settings, git_agent):
    git_agent.get_file_sha.return_value = "blob123"
    asyncio.run(BuildDispatcher(settings, MemoryStore(), git_agent=git_agent).dispatch(MARKDOWN, "p"))
    assert git_agent.put_file.await_args.kwargs["sha"] == "blob123"


def test_store_unavailable_still_dispatches(settings, git_agent):
    """Bookkeeping failures never block the build."""
    result = asyncio.run(BuildDispatcher(settings, NoOpBuildStore(), git_agent=git_agent).dispatch(MARKDOWN, "p"))

    assert result.build_id
    assert result.branch_name == f"build/{result.build_id}"
    assert result.side_effects["persist"].degraded
    git_agent.put_file.assert_awaited_once()


def test_workflow_dispatch_failure_is_degraded(settings, git_agent):
    git_agent.dispatch_workflow.side_effect = UpstreamError("workflow not found", status=404)
    result = asyncio.run(BuildDispatcher(settings, MemoryStore(), git_agent=git_agent).dispatch(MARKDOWN, "p"))

    assert result.side_effects["dispatch"].degraded
    assert "workflow not found" in result.side_effects["dispatch"].reason


def test_identical_submissions_are_not_deduplicated(settings, git_agent):
    dispatcher = BuildDispatcher(settings, MemoryStore(), git_agent=git_agent)
    first = asyncio.run(dispatcher.dispatch(MARKDOWN, "p"))
    second = asyncio.run(dispatcher.dispatch(MARKDOWN, "p"))

    assert first.build_id != second.build_id
    assert first.branch_name != second.branch_name
    assert git_agent.put_file.await_count == 2


def test_base_branch_failure_aborts(settings, git_agent):
    git_agent.get_branch_sha.side_effect = UpstreamError("Bad credentials", status=401)
    with pytest.raises(UpstreamError):
        asyncio.run(BuildDispatcher(settings, MemoryStore(), git_agent=git_agent).dispatch(MARKDOWN, "p"))
    git_agent.create_branch.assert_not_awaited()


def test_branch_creation_failure_aborts(settings, git_agent):
    git_agent.create_branch.side_effect = UpstreamError("Reference already exists", status=422)
    with pytest.raises(UpstreamError):
        asyncio.run(BuildDispatcher(settings, MemoryStore(), git_agent=git_agent).dispatch(MARKDOWN, "p"))
    git_agent.put_file.assert_not_awaited()


@pytest.mark.parametrize("markdown,project_id", [("", "p"), (MARKDOWN, ""), (None, "p"), (MARKDOWN, None)])
def test_missing_fields(settings, git_agent, markdown, project_id):
    with pytest.raises(BadRequestError) as exc_info:
        asyncio.run(BuildDispatcher(settings, MemoryStore(), git_agent=git_agent).dispatch(markdown, project_id))
    assert "markdown, projectId" in str(exc_info.value)


@pytest.mark.parametrize("project_id,slug", [("../etc", "index"), ("a/b", "index"), ("p", "../x"), ("p", "a\\b")])
def test_path_segments_validated(settings, git_agent, project_id, slug):
    with pytest.raises(BadRequestError):
        asyncio.run(BuildDispatcher(settings, MemoryStore(), git_agent=git_agent).dispatch(
            MARKDOWN, project_id, {"slug": slug},
        ))
    git_agent.get_branch_sha.assert_not_awaited()


def test_missing_github_configuration():
    dispatcher = BuildDispatcher(Settings(), MemoryStore())
    with pytest.raises(ConfigurationError):
        asyncio.run(dispatcher.dispatch(MARKDOWN, "p"))


def test_polling_url_falls_back_to_request_base(git_agent):
    settings = Settings(github_owner="org", github_repo="site")
    result = asyncio.run(BuildDispatcher(settings, MemoryStore(), git_agent=git_agent).dispatch(
        MARKDOWN, "p", base_url="http://testserver/",
    ))
    assert result.polling_url == f"http://testserver/api/build/{result.build_id}/status"


def test_commit_path_matches_reported_file_path(settings):
    puts = []

    def handler(request):
        if request.method == "GET" and request.url.path.endswith("/git/ref/heads/main"):
            return httpx.Response(200, json={"object": {"sha": "basesha"}})
        if request.method == "POST" and request.url.path.endswith("/git/refs"):
            return httpx.Response(201, json={})
        if request.method == "PUT":
            puts.append(request.url.raw_path)
            return httpx.Response(201, json={})
        if request.method == "POST":
            return httpx.Response(204)
        return httpx.Response(404, json={"message": "Not Found"})

    agent = GitAgent(owner="org", repo="site", transport=httpx.MockTransport(handler))
    result = asyncio.run(BuildDispatcher(settings, MemoryStore(), git_agent=agent).dispatch(MARKDOWN, "team#docs"))

    assert result.file_path == "content/team#docs/index.md"
    assert puts == [b"/repos/org/site/contents/content/team%23docs/index.md"]


@pytest.mark.parametrize("metadata", [
    {"author": 42},
    {"title": ["a", "b"]},
    {"slug": 7},
    {"authorName": {"first": "Ada"}},
])
def test_non_string_metadata_is_bad_request(settings, git_agent, metadata):
    store = MemoryStore()
    with pytest.raises(BadRequestError) as exc_info:
        asyncio.run(BuildDispatcher(settings, store, git_agent=git_agent).dispatch(MARKDOWN, "p", metadata))
    assert "must be a string" in str(exc_info.value)
    assert store.records == {}
    git_agent.get_branch_sha.assert_not_awaited()

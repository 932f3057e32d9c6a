import asyncio

import httpx
import pytest

from app.agents.ci_monitor import CIMonitor, reconcile_status, select_latest_run
from app.core.errors import UpstreamError
from app.models.workflow_run import WorkflowRun


def _run(branch, status, conclusion=None, created_at=None):
    return WorkflowRun(
        head_branch=branch, status=status, conclusion=conclusion,
        html_url=f"https://github.com/org/site/actions/runs/{branch}",
        created_at=created_at,
    )


# ===================================================================
# Reconciliation rule
# ===================================================================
@pytest.mark.parametrize("run,stored,expected", [
    (_run("b", "completed", "success"), "queued", "completed"),
    (_run("b", "completed", "failure"), "queued", "failed"),
    (_run("b", "completed", "cancelled"), "queued", "failed"),
    (_run("b", "completed", None), "queued", "failed"),
    (_run("b", "in_progress"), "queued", "building"),
    (_run("b", "queued"), "queued", "queued"),
    (_run("b", "waiting"), "building", "building"),
    (None, "failed", "failed"),
    (None, None, "queued"),
])
def test_reconcile_status(run, stored, expected):
    assert reconcile_status(stored, run) == expected


def test_select_latest_run_matches_branch_only():
    runs = [_run("build/other", "completed", "success"), _run("main", "in_progress")]
    assert select_latest_run(runs, "build/abc") is None


def test_select_latest_run_prefers_newest():
    runs = [
        _run("build/abc", "completed", "failure", created_at="2024-11-06T10:00:00Z"),
        _run("build/abc", "in_progress", created_at="2024-11-06T11:00:00Z"),
    ]
    assert select_latest_run(runs, "build/abc").status == "in_progress"


def test_select_latest_run_without_timestamps_keeps_api_order():
    runs = [_run("build/abc", "in_progress"), _run("build/abc", "completed", "success")]
    assert select_latest_run(runs, "build/abc").status == "in_progress"


# ===================================================================
# GitHub listing
# ===================================================================
def test_list_workflow_runs_requests_page_size():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"workflow_runs": [
            {"id": 1, "head_branch": "build/abc", "status": "completed",
             "conclusion": "success", "html_url": "https://github.com/org/site/actions/runs/1"},
        ]})

    monitor = CIMonitor(owner="org", repo="site", github_token="t", transport=httpx.MockTransport(handler))
    run = asyncio.run(monitor.find_run_for_branch("build/abc", per_page=25))

    assert run.id == 1
    assert run.conclusion == "success"
    assert seen[0].url.path == "/repos/org/site/actions/runs"
    assert seen[0].url.params["per_page"] == "25"


def test_list_workflow_runs_error():
    monitor = CIMonitor(
        owner="org", repo="site",
        transport=httpx.MockTransport(lambda request: httpx.Response(500, json={})),
    )
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(monitor.list_workflow_runs())
    assert exc_info.value.status == 500


def test_empty_listing():
    monitor = CIMonitor(
        owner="org", repo="site",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"total_count": 0})),
    )
    assert asyncio.run(monitor.find_run_for_branch("build/abc")) is None


@pytest.mark.parametrize("response", [
    httpx.Response(200, text="<html>rate limited</html>"),
    httpx.Response(200, json=[]),
    httpx.Response(200, json={"workflow_runs": None}),
    httpx.Response(200, json={"workflow_runs": [{"id": "not-a-number"}]}),
])
def test_malformed_listing_raises_upstream_error(response):
    monitor = CIMonitor(owner="org", repo="site", transport=httpx.MockTransport(lambda request: response))
    with pytest.raises(UpstreamError):
        asyncio.run(monitor.find_run_for_branch("build/abc"))

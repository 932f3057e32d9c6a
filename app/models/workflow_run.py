"""
Workflow Run Model
Read-only view of a GitHub Actions run, reduced to the fields status
reconciliation needs.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel


class WorkflowRun(BaseModel):
    id: Optional[int] = None
    head_branch: Optional[str] = None
    status: Optional[str] = None        # queued / in_progress / completed / ...
    conclusion: Optional[str] = None    # success / failure / cancelled / ... once completed
    html_url: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "WorkflowRun":
        return cls(
            id=payload.get("id"),
            head_branch=payload.get("head_branch"),
            status=payload.get("status"),
            conclusion=payload.get("conclusion"),
            html_url=payload.get("html_url"),
            created_at=payload.get("created_at"),
        )

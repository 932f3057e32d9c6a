"""
Side Effect Result
==================
Outcome of a best-effort call (persisting a record, dispatching a workflow,
querying an optional source).

A degraded result never fails the enclosing request: the caller logs the
reason and carries on. Results are kept on the service result objects so
tests can assert on degraded paths directly.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class SideEffect:
    ok: bool
    reason: str = ""

    @property
    def degraded(self) -> bool:
        return not self.ok

    @classmethod
    def success(cls) -> "SideEffect":
        return cls(ok=True)

    @classmethod
    def degrade(cls, reason: str) -> "SideEffect":
        return cls(ok=False, reason=reason)

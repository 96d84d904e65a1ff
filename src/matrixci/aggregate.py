# aggregate.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .model import JobInstance, Outcome


@dataclass(frozen=True)
class InstanceReport:
    name: str
    family: str
    outcome: Outcome
    reason: Optional[str] = None


@dataclass(frozen=True)
class RunVerdict:
    """One verdict for the whole run, plus every instance's own outcome."""
    success: bool
    reports: List[InstanceReport] = field(default_factory=list)

    @property
    def failures(self) -> List[InstanceReport]:
        return [r for r in self.reports if r.outcome is not Outcome.SUCCESS]

    @property
    def status(self) -> str:
        return "success" if self.success else "failure"


def aggregate(instances: Iterable[JobInstance]) -> RunVerdict:
    """
    Logical AND over every instance outcome, across all families.

    A pending instance has not succeeded, so it fails the run.
    """
    reports = [
        InstanceReport(name=i.name, family=i.family, outcome=i.outcome, reason=i.reason)
        for i in instances
    ]
    success = all(r.outcome is Outcome.SUCCESS for r in reports)
    return RunVerdict(success=success, reports=reports)

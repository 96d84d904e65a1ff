# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple


# (axis name, value) pairs, in axis declaration order
Combination = Tuple[Tuple[str, str], ...]


class Outcome(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class Step:
    """A single command (step) inside a CI job."""
    name: str
    run: str
    cwd: str | None = None
    env: Dict[str, str] = field(default_factory=dict)
    # checkpoint steps keep running after an earlier checkpoint failed
    always_run: bool = False
    kind: str | None = None    # e.g. "toolchain" for channel activation


@dataclass(frozen=True)
class Axis:
    """A named, ordered set of discrete values (e.g. os, channel)."""
    name: str
    values: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.values:
            raise ValueError(f"Axis '{self.name}' has no values")
        if len(set(self.values)) != len(self.values):
            raise ValueError(f"Axis '{self.name}' has duplicate values: {list(self.values)}")


@dataclass(frozen=True)
class JobFamily:
    """
    A named category of check with its own axes and step sequence.

    `steps` is called once per combination with the axis values as a dict,
    e.g. {"os": "ubuntu-latest", "channel": "nightly"}.
    `title` is a display-name template formatted with the same dict.
    """
    name: str
    axes: Tuple[Axis, ...]
    steps: Callable[[Dict[str, str]], List[Step]]
    title: str = ""
    fail_fast: bool = False

    def display_name(self, values: Dict[str, str]) -> str:
        return (self.title or self.name).format(**values)


@dataclass(frozen=True)
class SourceSnapshot:
    """The checked-out source a run is bound to. Read-only for every instance."""
    root: Path
    revision: Optional[str] = None


@dataclass
class StepResult:
    name: str
    cmd: str
    exit_code: Optional[int]
    skipped: bool = False
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return not self.skipped and self.exit_code == 0


@dataclass
class JobInstance:
    """
    One concrete (family, axis-value tuple) execution unit.

    Mutated only by its own execution; discarded at run end.
    """
    family: str
    combination: Combination
    name: str
    steps: List[Step]
    fail_fast: bool = False
    outcome: Outcome = Outcome.PENDING
    reason: Optional[str] = None
    results: List[StepResult] = field(default_factory=list)

    @property
    def identity(self) -> Tuple[str, Combination]:
        return self.family, self.combination

    @property
    def values(self) -> Dict[str, str]:
        return dict(self.combination)

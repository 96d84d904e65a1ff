# step_workflows/lint.py
from __future__ import annotations

from typing import Dict, List

from ..dsl import sh
from ..model import Step
from .toolchain import activate, pinned

# target selection per clippy invocation; "" is the default target set
LINT_TARGETS = ["", "--bins", "--examples", "--tests"]


def lint_step(target: str = "") -> Step:
    """
    One clippy checkpoint over the feature powerset.

    Checkpoints run even when an earlier one in the same job failed.
    """
    cmd = "cargo hack clippy --feature-powerset --workspace"
    if target:
        cmd = f"{cmd} {target}"
    label = target.lstrip("-") or "default"
    return sh(f"Clippy ({label})", cmd, always_run=True)


def lint_steps(values: Dict[str, str]) -> List[Step]:
    channel = values["channel"]
    steps = [
        activate(channel, components=["clippy"]),
        sh("Install cargo-hack", "cargo install cargo-hack"),
    ]
    steps.extend(lint_step(t) for t in LINT_TARGETS)
    return pinned(channel, steps)

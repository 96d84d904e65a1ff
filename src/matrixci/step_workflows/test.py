# step_workflows/test.py
from __future__ import annotations

from typing import Dict, List

from ..dsl import sh
from ..model import Step
from .toolchain import activate, pinned


def test_steps(values: Dict[str, str]) -> List[Step]:
    """Full test suite, every feature, every workspace member, optimized build."""
    channel = values["channel"]
    return pinned(channel, [
        activate(channel, self_update=False),
        sh("Test", "cargo test --all-features --workspace --release"),
    ])

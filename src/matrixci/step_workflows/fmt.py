# step_workflows/fmt.py
from __future__ import annotations

from typing import Dict, List

from ..dsl import sh
from ..model import Step
from .toolchain import activate, pinned


def format_steps(values: Dict[str, str]) -> List[Step]:
    # check only, never rewrites the checkout
    channel = values["channel"]
    return pinned(channel, [
        activate(channel, components=["rustfmt"]),
        sh("Check formatting", "cargo fmt --all -- --check"),
    ])

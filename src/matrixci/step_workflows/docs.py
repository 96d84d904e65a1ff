# step_workflows/docs.py
from __future__ import annotations

from typing import Dict, List

from ..dsl import sh
from ..model import Step
from .toolchain import activate, pinned

# warnings are errors; doc_cfg enables the feature badges
RUSTDOCFLAGS = "-D warnings --cfg doc_cfg"


def docs_steps(values: Dict[str, str]) -> List[Step]:
    channel = values["channel"]
    return pinned(channel, [
        activate(channel),
        sh(
            "Build docs",
            f"cargo +{channel} doc --workspace --all-features --no-deps --document-private-items",
            env={"RUSTDOCFLAGS": RUSTDOCFLAGS},
        ),
    ])

# step_workflows/bench.py
from __future__ import annotations

from typing import Dict, List

from ..dsl import sh
from ..model import Step
from .toolchain import activate, pinned


def compile_bench_steps(values: Dict[str, str]) -> List[Step]:
    """Compile benchmarks without running a single iteration."""
    channel = values["channel"]
    return pinned(channel, [
        activate(channel),
        sh("Compile benches", "cargo bench --no-run --workspace --all-features"),
    ])

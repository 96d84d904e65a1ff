# policy.py
# The built-in CI policy: what runs, where, and on which events.
from __future__ import annotations

from .dsl import Workflow, axis, family, wf
from .step_workflows import (
    compile_bench_steps,
    docs_steps,
    format_steps,
    lint_steps,
    test_steps,
)
from .triggers import on

# runner labels only; every instance executes on the local host
ALL_OS = ["macos-latest", "ubuntu-latest", "windows-latest"]
LINUX = ["ubuntu-latest"]
CHANNELS = ["stable", "nightly"]

# every other day at midnight
SCHEDULE = "0 0 * * */2"

# passed to every step of every job
CI_ENV = {
    "CARGO_TERM_COLOR": "always",
    "RUSTFLAGS": "-D warnings -A unknown-lints",
    "RUST_BACKTRACE": "full",
}


def default_workflow() -> Workflow:
    return wf(
        "CI",
        family(
            "test",
            test_steps,
            axis("os", ALL_OS),
            axis("channel", CHANNELS),
            title="Test ({os} + {channel})",
        ),
        family(
            "lint",
            lint_steps,
            axis("os", LINUX),
            axis("channel", CHANNELS),
            title="Lint ({os} + {channel})",
        ),
        family(
            "format",
            format_steps,
            axis("os", LINUX),
            axis("channel", ["nightly"]),
            title="Format",
        ),
        family(
            "docs",
            docs_steps,
            axis("os", LINUX),
            axis("channel", ["nightly"]),
            title="Docs",
        ),
        family(
            "compile-bench",
            compile_bench_steps,
            axis("os", ALL_OS),
            axis("channel", CHANNELS),
            title="Compile Bench ({os} + {channel})",
        ),
        on=on(pull_request=True, push=["main"], schedule=[SCHEDULE]),
        env=CI_ENV,
    )

# src/matrixci/dsl.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .model import Axis, JobFamily, Step
from .triggers import TriggerPolicy


# ---------------------------------------------------------------------
# Step helper
# ---------------------------------------------------------------------

def sh(
    name: str,
    cmd: str,
    *,
    cwd: str | None = None,
    env: Optional[Dict[str, str]] = None,
    always_run: bool = False,
    kind: str | None = None,
) -> Step:
    """Create a shell step."""
    return Step(name=name, run=cmd, cwd=cwd, env=dict(env or {}), always_run=always_run, kind=kind)


# ---------------------------------------------------------------------
# Matrix axes
# ---------------------------------------------------------------------

def axis(name: str, values: Iterable[str]) -> Axis:
    """
    Example:
        axis("os", ["macos-latest", "ubuntu-latest", "windows-latest"])
    """
    return Axis(name=name, values=tuple(str(v) for v in values))


# ---------------------------------------------------------------------
# Family helper
# ---------------------------------------------------------------------

def family(
    name: str,
    steps: Callable[[Dict[str, str]], List[Step]],
    *axes: Axis,
    title: str | None = None,
) -> JobFamily:
    """
    family("test", test_steps, axis("os", [...]), axis("channel", [...]),
           title="Test ({os} + {channel})")

    fail-fast is never enabled: one failing instance does not cancel its siblings.
    """
    return JobFamily(
        name=name,
        axes=tuple(axes),
        steps=steps,
        title=title or name,
        fail_fast=False,
    )


# ---------------------------------------------------------------------
# Workflow helper (single-file story)
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class Workflow:
    name: str
    on: TriggerPolicy
    families: Tuple[JobFamily, ...]
    env: Dict[str, str] = field(default_factory=dict)

    def family(self, name: str) -> JobFamily:
        for f in self.families:
            if f.name == name:
                return f
        raise KeyError(f"Unknown job family {name!r}. Known: {[f.name for f in self.families]}")

    def only(self, *names: str) -> "Workflow":
        """Same policy restricted to the named families."""
        return Workflow(
            name=self.name,
            on=self.on,
            families=tuple(self.family(n) for n in names),
            env=self.env,
        )


def wf(
    name: str,
    *families: JobFamily,
    on: TriggerPolicy,
    env: Optional[Dict[str, str]] = None,
) -> Workflow:
    """
    Workflow definition helper.

    Users can write:
        from matrixci import wf, family, axis, on

        def workflow():
            return wf("CI", family(...), family(...), on=on(pull_request=True))
    """
    names = [f.name for f in families]
    if len(set(names)) != len(names):
        dupes = sorted({n for n in names if names.count(n) > 1})
        raise ValueError(f"Duplicate family names found: {dupes}")
    return Workflow(name=name, on=on, families=tuple(families), env=dict(env or {}))

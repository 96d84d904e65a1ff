# step_workflows/toolchain.py
from __future__ import annotations

from dataclasses import replace
from typing import List

from ..dsl import sh
from ..model import Step

TOOLCHAIN = "toolchain"

# rustup proxies (cargo, rustc, ...) honor this over the user-wide default
TOOLCHAIN_ENV = "RUSTUP_TOOLCHAIN"


def activate(channel: str, *, self_update: bool = True, components: List[str] | None = None) -> Step:
    """
    Install or update a toolchain channel, optionally adding components.

    Never touches `rustup default`: instances on other channels share the
    host. The channel is selected per step by `pinned`.

    A failure here is reported as a toolchain-activation failure, not a check failure.
    """
    cmd = f"rustup update {channel}"
    if not self_update:
        cmd += " --no-self-update"
    for component in components or []:
        cmd += f" && rustup component add --toolchain {channel} {component}"
    return sh(f"Activate {channel}", cmd, kind=TOOLCHAIN)


def pinned(channel: str, steps: List[Step]) -> List[Step]:
    """Run every step of one instance on `channel`."""
    return [replace(s, env={**s.env, TOOLCHAIN_ENV: channel}) for s in steps]

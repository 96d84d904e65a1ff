# matrix.py
from __future__ import annotations

from itertools import product
from typing import Iterable, List, Sequence

from .model import Axis, Combination, JobFamily, JobInstance


def expand(axes: Sequence[Axis]) -> List[Combination]:
    """
    Full cross-product of axis values, in declaration order.

    expand([Axis("os", ("a", "b")), Axis("channel", ("stable",))])
      -> [(("os","a"),("channel","stable")), (("os","b"),("channel","stable"))]

    No axes -> one empty combination (the family still runs once).
    """
    names = [a.name for a in axes]
    if len(set(names)) != len(names):
        raise ValueError(f"Duplicate axis names: {names}")
    return [tuple(zip(names, values)) for values in product(*(a.values for a in axes))]


def expand_family(family: JobFamily) -> List[JobInstance]:
    instances: List[JobInstance] = []
    for combo in expand(family.axes):
        values = dict(combo)
        steps = list(family.steps(values))
        if not steps:
            raise ValueError(f"Family '{family.name}' produced no steps for {values}")
        instances.append(
            JobInstance(
                family=family.name,
                combination=combo,
                name=family.display_name(values),
                steps=steps,
                fail_fast=family.fail_fast,
            )
        )
    return instances


def expand_all(families: Iterable[JobFamily]) -> List[JobInstance]:
    """Expand every family independently; identities must be unique across the run."""
    instances: List[JobInstance] = []
    seen = set()
    for family in families:
        for inst in expand_family(family):
            if inst.identity in seen:
                raise ValueError(f"Duplicate job instance: {inst.identity}")
            seen.add(inst.identity)
            instances.append(inst)
    return instances

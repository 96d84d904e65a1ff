# triggers.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Tuple

# Events the policy knows about. Anything else is "other" and never starts a run.
PULL_REQUEST = "pull_request"
PUSH = "push"
SCHEDULE = "schedule"

BRANCH_REF_PREFIX = "refs/heads/"


@dataclass(frozen=True)
class Event:
    """An incoming event from the hosting event source. Consumed once."""
    kind: str
    branch: Optional[str] = None      # push only
    cron: Optional[str] = None        # schedule only
    revision: Optional[str] = None


@dataclass(frozen=True)
class TriggerPolicy:
    """Which events start a run."""
    pull_request: bool = True
    push_branches: Tuple[str, ...] = ("main",)
    schedules: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for expr in self.schedules:
            parse_cron(expr)  # fail at load time, not at tick time


def on(
    *,
    pull_request: bool = False,
    push: Optional[List[str]] = None,
    schedule: Optional[List[str]] = None,
) -> TriggerPolicy:
    """DSL helper: on(pull_request=True, push=["main"], schedule=["0 0 * * */2"])."""
    return TriggerPolicy(
        pull_request=pull_request,
        push_branches=tuple(push or ()),
        schedules=tuple(schedule or ()),
    )


def evaluate(event: Event, policy: TriggerPolicy) -> bool:
    """Pure predicate: does this event start a run?"""
    if event.kind == PULL_REQUEST:
        return policy.pull_request
    if event.kind == PUSH:
        return event.branch is not None and event.branch in policy.push_branches
    if event.kind == SCHEDULE:
        return event.cron is not None and event.cron in policy.schedules
    return False


def parse_event(name: str, payload: Optional[Dict[str, Any]] = None) -> Event:
    """
    Normalise a GitHub-style webhook (event name + JSON payload) into an Event.

    Unknown event names are kept as-is so that evaluate() ignores them.
    """
    payload = payload or {}

    if name == PUSH:
        ref = payload.get("ref") or ""
        branch = ref[len(BRANCH_REF_PREFIX):] if ref.startswith(BRANCH_REF_PREFIX) else None
        return Event(kind=PUSH, branch=branch, revision=payload.get("after"))

    if name == PULL_REQUEST:
        pr = payload.get("pull_request") or {}
        head = pr.get("head") or {}
        return Event(kind=PULL_REQUEST, revision=head.get("sha"))

    if name == SCHEDULE:
        return Event(kind=SCHEDULE, cron=payload.get("schedule"))

    return Event(kind=name)


# ---------------------------------------------------------------------
# Cron
# ---------------------------------------------------------------------

# (low, high) per field: minute, hour, day-of-month, month, day-of-week
_CRON_BOUNDS = [(0, 59), (0, 23), (1, 31), (1, 12), (0, 7)]


@dataclass(frozen=True)
class CronSpec:
    minutes: frozenset
    hours: frozenset
    days: frozenset
    months: frozenset
    weekdays: frozenset
    days_star: bool = False
    weekdays_star: bool = False


def _parse_field(text: str, low: int, high: int) -> Set[int]:
    out: Set[int] = set()
    for part in text.split(","):
        if not part:
            raise ValueError(f"Empty cron list item in {text!r}")
        base, _, step_s = part.partition("/")
        step = int(step_s) if step_s else 1
        if step < 1:
            raise ValueError(f"Cron step must be positive: {part!r}")

        if base == "*":
            start, end = low, high
        elif "-" in base:
            a, b = base.split("-", 1)
            start, end = int(a), int(b)
        else:
            start = int(base)
            # "5/10" means from 5 to the top of the range
            end = high if step_s else start

        if start < low or end > high or start > end:
            raise ValueError(f"Cron value out of range {low}-{high}: {part!r}")
        out.update(range(start, end + 1, step))
    return out


def parse_cron(expr: str) -> CronSpec:
    fields = expr.split()
    if len(fields) != 5:
        raise ValueError(f"Cron expression must have 5 fields, got {len(fields)}: {expr!r}")

    parsed = [_parse_field(f, lo, hi) for f, (lo, hi) in zip(fields, _CRON_BOUNDS)]
    # 7 is Sunday too
    weekdays = {0 if d == 7 else d for d in parsed[4]}

    return CronSpec(
        minutes=frozenset(parsed[0]),
        hours=frozenset(parsed[1]),
        days=frozenset(parsed[2]),
        months=frozenset(parsed[3]),
        weekdays=frozenset(weekdays),
        days_star=fields[2].startswith("*"),
        weekdays_star=fields[4].startswith("*"),
    )


def cron_matches(expr: str, when: datetime) -> bool:
    """Does the minute `when` fall on a tick of the cron expression?"""
    spec = parse_cron(expr)
    if when.minute not in spec.minutes or when.hour not in spec.hours:
        return False
    if when.month not in spec.months:
        return False

    day_ok = when.day in spec.days
    # datetime: Monday=0; cron: Sunday=0
    weekday_ok = (when.weekday() + 1) % 7 in spec.weekdays
    if spec.days_star or spec.weekdays_star:
        return day_ok and weekday_ok
    return day_ok or weekday_ok


def is_due(policy: TriggerPolicy, when: datetime) -> Optional[Event]:
    """Return the schedule event for `when` if any declared cron ticks then."""
    for expr in policy.schedules:
        if cron_matches(expr, when):
            return Event(kind=SCHEDULE, cron=expr)
    return None

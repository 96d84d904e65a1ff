"""
Trigger evaluation, webhook normalisation and schedule ticks.

Run with:
    pytest tests/test_triggers.py -v
"""
from datetime import datetime

import pytest

from matrixci.policy import SCHEDULE, default_workflow
from matrixci.triggers import (
    Event,
    TriggerPolicy,
    cron_matches,
    evaluate,
    is_due,
    on,
    parse_cron,
    parse_event,
)


@pytest.fixture
def policy():
    return default_workflow().on


class TestEvaluate:

    def test_pull_request_any_target(self, policy):
        assert evaluate(Event(kind="pull_request"), policy)

    def test_push_to_main(self, policy):
        assert evaluate(Event(kind="push", branch="main"), policy)

    @pytest.mark.parametrize("branch", ["develop", "main-2", "feature/main", None])
    def test_push_to_other_branch_ignored(self, policy, branch):
        assert not evaluate(Event(kind="push", branch=branch), policy)

    def test_declared_schedule(self, policy):
        assert evaluate(Event(kind="schedule", cron=SCHEDULE), policy)

    def test_undeclared_schedule_ignored(self, policy):
        assert not evaluate(Event(kind="schedule", cron="0 12 * * *"), policy)

    @pytest.mark.parametrize("kind", ["issue_comment", "release", "workflow_dispatch", ""])
    def test_unrelated_events_ignored(self, policy, kind):
        assert not evaluate(Event(kind=kind), policy)

    def test_pull_requests_can_be_disabled(self):
        assert not evaluate(Event(kind="pull_request"), on(push=["main"]))

    def test_invalid_schedule_rejected_at_load(self):
        with pytest.raises(ValueError):
            TriggerPolicy(schedules=("0 0 * *",))


class TestParseEvent:

    def test_push_branch_and_revision(self):
        ev = parse_event("push", {"ref": "refs/heads/main", "after": "abc123"})
        assert ev == Event(kind="push", branch="main", revision="abc123")

    def test_push_tag_has_no_branch(self):
        ev = parse_event("push", {"ref": "refs/tags/v1.0"})
        assert ev.branch is None
        assert not evaluate(ev, default_workflow().on)

    def test_pull_request_head_sha(self):
        ev = parse_event("pull_request", {"pull_request": {"head": {"sha": "def456"}}})
        assert ev.kind == "pull_request"
        assert ev.revision == "def456"

    def test_schedule(self):
        ev = parse_event("schedule", {"schedule": SCHEDULE})
        assert ev.cron == SCHEDULE

    def test_unknown_event_kept(self):
        assert parse_event("issue_comment", {"action": "created"}).kind == "issue_comment"

    def test_missing_payload(self):
        assert parse_event("pull_request", None).revision is None


class TestCron:

    def test_every_other_weekday_at_midnight(self):
        spec = parse_cron(SCHEDULE)
        assert spec.weekdays == frozenset({0, 2, 4, 6})
        assert spec.minutes == frozenset({0})
        assert spec.hours == frozenset({0})

    @pytest.mark.parametrize(
        "when,expected",
        [
            (datetime(2024, 1, 2, 0, 0), True),    # Tuesday
            (datetime(2024, 1, 4, 0, 0), True),    # Thursday
            (datetime(2024, 1, 7, 0, 0), True),    # Sunday
            (datetime(2024, 1, 1, 0, 0), False),   # Monday
            (datetime(2024, 1, 2, 0, 1), False),
            (datetime(2024, 1, 2, 12, 0), False),
        ],
    )
    def test_schedule_ticks(self, when, expected):
        assert cron_matches(SCHEDULE, when) is expected

    def test_ranges_lists_and_steps(self):
        expr = "5,10-20/5 1-3 * 6 *"
        assert cron_matches(expr, datetime(2024, 6, 3, 2, 15))
        assert cron_matches(expr, datetime(2024, 6, 3, 1, 5))
        assert not cron_matches(expr, datetime(2024, 6, 3, 2, 12))
        assert not cron_matches(expr, datetime(2024, 7, 3, 2, 15))

    def test_sunday_as_seven(self):
        assert cron_matches("0 0 * * 7", datetime(2024, 1, 7))

    def test_day_of_month_or_weekday_when_both_restricted(self):
        expr = "0 0 1 * 1"
        assert cron_matches(expr, datetime(2024, 2, 1))    # 1st, a Thursday
        assert cron_matches(expr, datetime(2024, 2, 5))    # a Monday
        assert not cron_matches(expr, datetime(2024, 2, 6))

    @pytest.mark.parametrize("expr", ["* * * *", "60 * * * *", "*/0 * * * *", "5-1 * * * *", "a * * * *"])
    def test_invalid(self, expr):
        with pytest.raises(ValueError):
            parse_cron(expr)

    def test_is_due(self, policy):
        ev = is_due(policy, datetime(2024, 1, 2, 0, 0))
        assert ev == Event(kind="schedule", cron=SCHEDULE)
        assert evaluate(ev, policy)
        assert is_due(policy, datetime(2024, 1, 1, 0, 0)) is None

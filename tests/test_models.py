"""Tests for data models."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone

import pytest

from copilot_admin.models import (
    CountBreakdown,
    MetricsSummary,
    OperationResult,
    Seat,
)

NOW = datetime(2026, 2, 10, 12, 0, tzinfo=timezone.utc)


class TestCountBreakdown:
    def test_add(self):
        total = CountBreakdown(10, 4, 20).add(CountBreakdown(5, 1, 3))
        assert total == CountBreakdown(15, 5, 23)

    def test_add_returns_new_instance(self):
        a = CountBreakdown(1, 1, 1)
        a.add(CountBreakdown(1, 1, 1))
        assert a == CountBreakdown(1, 1, 1)

    def test_acceptance_rate(self):
        assert CountBreakdown(200, 50, 0).acceptance_rate == 0.25

    def test_acceptance_rate_no_suggestions(self):
        assert CountBreakdown().acceptance_rate == 0.0


class TestSeat:
    def test_recent_activity_is_active(self):
        seat = Seat("octocat", last_activity_at=NOW - timedelta(days=5))
        assert seat.is_active(NOW) is True

    def test_old_activity_is_inactive(self):
        seat = Seat("octocat", last_activity_at=NOW - timedelta(days=40))
        assert seat.is_active(NOW) is False

    def test_exactly_thirty_days_is_active(self):
        seat = Seat("octocat", last_activity_at=NOW - timedelta(days=30))
        assert seat.is_active(NOW) is True

    def test_naive_timestamps_compare_as_utc(self):
        seat = Seat("octocat", last_activity_at=(NOW - timedelta(days=1)).replace(tzinfo=None))
        assert seat.is_active(NOW) is True
        assert seat.is_active(NOW.replace(tzinfo=None)) is True

    def test_no_activity_is_inactive(self):
        assert Seat("octocat").is_active(NOW) is False

    def test_frozen(self):
        seat = Seat("octocat")
        with pytest.raises(FrozenInstanceError):
            seat.assignee = "other"


class TestMetricsSummary:
    def test_acceptance_percent(self):
        s = MetricsSummary(organization="Acme", generated_at=NOW, acceptance_rate=0.5)
        assert s.acceptance_percent == 50.0

    def test_to_dict_serializes_timestamp(self):
        s = MetricsSummary(organization="Acme", generated_at=NOW,
                           languages={"python": CountBreakdown(3, 2, 1)})
        d = s.to_dict()
        assert d["generated_at"] == NOW.isoformat()
        assert d["languages"]["python"] == {"suggestions": 3, "acceptances": 2, "lines": 1}


class TestOperationResult:
    def test_ok(self):
        r = OperationResult.ok({"id": 1})
        assert r.success and r.data == {"id": 1} and r.error == ""

    def test_failed(self):
        r = OperationResult.failed("boom")
        assert not r.success and r.error == "boom"

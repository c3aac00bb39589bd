"""Metrics calculation engine: fold usage records and seats into a summary."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from .models import (
    ACTIVITY_WINDOW,
    CountBreakdown,
    MetricsSummary,
    Seat,
    UsageRecord,
    as_utc,
)


def calculate_acceptance_rate(acceptances: int, suggestions: int) -> float:
    """Accepted ÷ shown suggestions; 0 when nothing was shown."""
    if suggestions <= 0:
        return 0.0
    return acceptances / suggestions


def count_seat_activity(seats: Iterable[Seat], now: datetime,
                        window: timedelta = ACTIVITY_WINDOW) -> tuple[int, int]:
    """Return (active, inactive). A seat with no activity timestamp is inactive."""
    active = inactive = 0
    for seat in seats:
        if seat.is_active(now, window):
            active += 1
        else:
            inactive += 1
    return active, inactive


def calculate_summary(organization: str, usage_records: Iterable[UsageRecord],
                      seats: Iterable[Seat], cost_per_seat: float,
                      now: datetime) -> MetricsSummary:
    """Aggregate daily usage and seat assignments into a MetricsSummary.

    Counts are summed across days except active users, which reports the
    peak daily value. Per-language and per-team counts accumulate across
    days. A naive ``now`` is taken as UTC. Inputs are not modified.
    """
    now = as_utc(now)
    suggestions = acceptances = lines = peak_users = days = 0
    languages: dict[str, CountBreakdown] = {}
    teams: dict[str, CountBreakdown] = {}

    for record in usage_records:
        days += 1
        suggestions += record.suggestions
        acceptances += record.acceptances
        lines += record.lines
        peak_users = max(peak_users, record.active_users)

        for name, counts in record.languages.items():
            languages[name] = languages.get(name, CountBreakdown()).add(counts)
        for name, counts in record.teams.items():
            teams[name] = teams.get(name, CountBreakdown()).add(counts)

    seat_list = list(seats)
    active, inactive = count_seat_activity(seat_list, now)
    total_seats = len(seat_list)

    return MetricsSummary(
        organization=organization,
        generated_at=now,
        total_suggestions=suggestions,
        total_acceptances=acceptances,
        total_lines_accepted=lines,
        peak_active_users=peak_users,
        acceptance_rate=calculate_acceptance_rate(acceptances, suggestions),
        active_seats=active,
        inactive_seats=inactive,
        total_seats=total_seats,
        cost_per_seat=cost_per_seat,
        total_monthly_cost=total_seats * cost_per_seat,
        potential_savings=inactive * cost_per_seat,
        days=days,
        languages=languages,
        teams=teams,
    )


def top_languages(summary: MetricsSummary, limit: int = 10) -> list[tuple[str, CountBreakdown]]:
    """Languages ordered by suggestion volume, largest first."""
    return sorted(summary.languages.items(),
                  key=lambda item: item[1].suggestions, reverse=True)[:limit]

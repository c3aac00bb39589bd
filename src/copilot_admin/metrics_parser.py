"""Parse Copilot API payloads into usage records, seats and billing info."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from .client import parse_timestamp
from .errors import UnexpectedPayloadError
from .models import BillingInfo, CountBreakdown, Seat, UsageRecord
from .plans import get_cost_per_seat


def _parse_day(value: str | None) -> date:
    if not value:
        raise UnexpectedPayloadError("Unexpected usage payload: day has no date")
    try:
        return date.fromisoformat(value[:10])
    except (TypeError, ValueError):
        raise UnexpectedPayloadError(f"Unexpected usage payload: bad date {value!r}") from None


def _merge(target: dict[str, CountBreakdown], key: str, counts: CountBreakdown) -> None:
    target[key] = target.get(key, CountBreakdown()).add(counts)


def _parse_legacy(day: dict) -> UsageRecord:
    """``/copilot/usage`` shape: flat totals plus a language/editor breakdown."""
    languages: dict[str, CountBreakdown] = {}
    for entry in day.get("breakdown") or []:
        _merge(languages, entry.get("language") or "unknown", CountBreakdown(
            suggestions=entry.get("suggestions_count", 0) or 0,
            acceptances=entry.get("acceptances_count", 0) or 0,
            lines=entry.get("lines_accepted", 0) or 0,
        ))
    return UsageRecord(
        date=_parse_day(day.get("day")),
        suggestions=day.get("total_suggestions_count", 0) or 0,
        acceptances=day.get("total_acceptances_count", 0) or 0,
        lines=day.get("total_lines_accepted", 0) or 0,
        active_users=day.get("total_active_users", 0) or 0,
        languages=languages,
    )


def _parse_metrics(day: dict) -> UsageRecord:
    """``/copilot/metrics`` shape: counts nested under editors → models → languages."""
    languages: dict[str, CountBreakdown] = {}
    completions = day.get("copilot_ide_code_completions") or {}
    for editor in completions.get("editors") or []:
        for model in editor.get("models") or []:
            for lang in model.get("languages") or []:
                _merge(languages, lang.get("name") or "unknown", CountBreakdown(
                    suggestions=lang.get("total_code_suggestions", 0) or 0,
                    acceptances=lang.get("total_code_acceptances", 0) or 0,
                    lines=lang.get("total_code_lines_accepted", 0) or 0,
                ))

    totals = CountBreakdown()
    for counts in languages.values():
        totals = totals.add(counts)

    return UsageRecord(
        date=_parse_day(day.get("date")),
        suggestions=totals.suggestions,
        acceptances=totals.acceptances,
        lines=totals.lines,
        active_users=day.get("total_active_users", 0) or 0,
        languages=languages,
    )


def parse_usage_record(day: dict) -> UsageRecord:
    """Parse one day of usage from either the legacy or the metrics endpoint."""
    if "day" in day or "total_suggestions_count" in day:
        return _parse_legacy(day)
    return _parse_metrics(day)


def parse_usage_records(days: list[dict]) -> list[UsageRecord]:
    return [parse_usage_record(day) for day in days]


def parse_seat(seat: dict) -> Seat:
    assignee = seat.get("assignee") or {}
    team = seat.get("assigning_team") or {}
    return Seat(
        assignee=assignee.get("login") or assignee.get("slug") or "unknown",
        last_activity_at=parse_timestamp(seat.get("last_activity_at")),
        created_at=parse_timestamp(seat.get("created_at")),
        last_activity_editor=seat.get("last_activity_editor") or "",
        team=team.get("slug") or "",
    )


def parse_billing(data: dict, cost_per_seat: float | None = None) -> BillingInfo:
    """Build BillingInfo; ``cost_per_seat`` overrides the plan's list price."""
    breakdown = data.get("seat_breakdown") or {}
    plan_type = data.get("plan_type") or ""
    return BillingInfo(
        total_seats=breakdown.get("total", 0) or 0,
        seat_management_setting=data.get("seat_management_setting") or "",
        plan_type=plan_type,
        public_code_suggestions=data.get("public_code_suggestions") or "unknown",
        cost_per_seat=get_cost_per_seat(plan_type, cost_per_seat),
    )


def attach_team_breakdowns(records: list[UsageRecord],
                           team_records: dict[str, list[UsageRecord]]) -> list[UsageRecord]:
    """Return copies of ``records`` with per-team counts filled in by date."""
    by_date: dict[date, dict[str, CountBreakdown]] = {}
    for team, days in team_records.items():
        for day in days:
            counts = CountBreakdown(day.suggestions, day.acceptances, day.lines)
            _merge(by_date.setdefault(day.date, {}), team, counts)

    return [
        replace(record, teams={**record.teams, **by_date.get(record.date, {})})
        for record in records
    ]

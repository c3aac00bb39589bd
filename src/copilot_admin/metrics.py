"""Copilot metrics report: fetch usage, seats and billing, then aggregate."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from .calculator import calculate_summary
from .client import GitHubClient
from .errors import CopilotAdminError
from .metrics_parser import (
    attach_team_breakdowns,
    parse_billing,
    parse_seat,
    parse_usage_records,
)
from .models import BillingInfo, MetricsSummary, Seat
from .pagination import paginate
from .plans import get_cost_per_seat

logger = logging.getLogger(__name__)

METRICS_DAYS_PER_PAGE = 100


@dataclass(frozen=True)
class MetricsReport:
    """Everything one report run produced, plus the raw API payloads."""

    organization: str
    generated_at: datetime
    since: Optional[str]
    until: Optional[str]
    summary: MetricsSummary
    usage: list = field(default_factory=list)
    seats: list = field(default_factory=list)
    billing: Optional[dict] = None
    billing_error: str = ""

    @property
    def billing_available(self) -> bool:
        return self.billing is not None

    def to_dict(self) -> dict[str, Any]:
        if self.billing is not None:
            billing = self.billing
        else:
            billing = {"available": False, "error": self.billing_error}
        return {
            "organization": self.organization,
            "reportDate": self.generated_at.isoformat(),
            "period": {"since": self.since or "N/A", "until": self.until or "N/A"},
            "usage": self.usage,
            "seats": {"total": len(self.seats), "details": self.seats},
            "billing": billing,
            "summary": self.summary.to_dict(),
        }


def get_all_seats(client: GitHubClient, org: str, page_size: int = 100,
                  max_pages: int | None = None) -> list[dict]:
    """All Copilot seat assignments of ``org`` (raw API dicts)."""
    return paginate(
        lambda page: client.get_copilot_seats_page(org, page=page, per_page=page_size),
        page_size,
        max_pages,
    )


def fetch_team_usage(client: GitHubClient, org: str, teams: Iterable[str],
                     since: str | None, until: str | None) -> dict[str, list]:
    """Per-team usage records, keyed by team slug."""
    return {
        team: parse_usage_records(client.get_copilot_team_metrics(org, team, since, until))
        for team in teams
    }


def _billing_cost(billing: BillingInfo | None, override: float | None) -> float:
    if billing is not None:
        return billing.cost_per_seat
    return get_cost_per_seat(None, override)


def generate_metrics_report(client: GitHubClient, org: str, since: str | None = None,
                            until: str | None = None, cost_per_seat: float | None = None,
                            teams: Iterable[str] = (), now: datetime | None = None,
                            page_size: int = 100,
                            max_pages: int | None = None) -> MetricsReport:
    """Fetch usage, seats and billing concurrently and build a MetricsReport.

    Usage and seats are required and their errors propagate. Billing is
    best-effort: a failure is recorded on the report and the cost per seat
    falls back to ``cost_per_seat`` or the Business list price.
    """
    now = now or datetime.now(timezone.utc)
    logger.info("Generating Copilot metrics report for %s (%s → %s)", org, since, until)

    with ThreadPoolExecutor(max_workers=3) as pool:
        usage_future = pool.submit(client.get_copilot_metrics, org, since, until,
                                   METRICS_DAYS_PER_PAGE)
        seats_future = pool.submit(get_all_seats, client, org, page_size, max_pages)
        billing_future = pool.submit(client.get_copilot_billing, org)

        usage = usage_future.result()
        seats = seats_future.result()
        billing_raw: Optional[dict] = None
        billing_error = ""
        try:
            billing_raw = billing_future.result()
        except CopilotAdminError as e:
            billing_error = str(e)
            logger.warning("Copilot billing unavailable for %s: %s", org, e)

    billing = parse_billing(billing_raw, cost_per_seat) if billing_raw is not None else None
    records = parse_usage_records(usage)
    teams = list(teams)
    if teams:
        records = attach_team_breakdowns(
            records, fetch_team_usage(client, org, teams, since, until)
        )
    seat_models: list[Seat] = [parse_seat(s) for s in seats]

    summary = calculate_summary(
        org, records, seat_models, _billing_cost(billing, cost_per_seat), now
    )
    return MetricsReport(
        organization=org,
        generated_at=now,
        since=since,
        until=until,
        summary=summary,
        usage=usage,
        seats=seats,
        billing=billing_raw,
        billing_error=billing_error,
    )

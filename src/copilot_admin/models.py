"""Data models for Copilot metrics, seats and GitHub operations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

ACTIVITY_WINDOW = timedelta(days=30)


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class CountBreakdown:
    """Suggestion/acceptance/line counts for one language or team."""

    suggestions: int = 0
    acceptances: int = 0
    lines: int = 0

    def add(self, other: CountBreakdown) -> CountBreakdown:
        return CountBreakdown(
            suggestions=self.suggestions + other.suggestions,
            acceptances=self.acceptances + other.acceptances,
            lines=self.lines + other.lines,
        )

    @property
    def acceptance_rate(self) -> float:
        if self.suggestions == 0:
            return 0.0
        return self.acceptances / self.suggestions


@dataclass(frozen=True)
class UsageRecord:
    """One calendar day of Copilot activity for an organization."""

    date: date
    suggestions: int = 0
    acceptances: int = 0
    lines: int = 0  # lines accepted
    active_users: int = 0
    languages: dict[str, CountBreakdown] = field(default_factory=dict)
    teams: dict[str, CountBreakdown] = field(default_factory=dict)


@dataclass(frozen=True)
class Seat:
    """A Copilot license assignment."""

    assignee: str
    last_activity_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    last_activity_editor: str = ""
    team: str = ""

    def is_active(self, now: datetime, window: timedelta = ACTIVITY_WINDOW) -> bool:
        if self.last_activity_at is None:
            return False
        return as_utc(now) - as_utc(self.last_activity_at) <= window


@dataclass(frozen=True)
class BillingInfo:
    """Organization-level Copilot billing snapshot."""

    total_seats: int = 0
    seat_management_setting: str = ""
    plan_type: str = ""
    public_code_suggestions: str = "unknown"
    cost_per_seat: float = 0.0


@dataclass(frozen=True)
class MetricsSummary:
    """Point-in-time aggregate of usage records and seats."""

    organization: str
    generated_at: datetime
    total_suggestions: int = 0
    total_acceptances: int = 0
    total_lines_accepted: int = 0
    peak_active_users: int = 0
    acceptance_rate: float = 0.0
    active_seats: int = 0
    inactive_seats: int = 0
    total_seats: int = 0
    cost_per_seat: float = 0.0
    total_monthly_cost: float = 0.0
    potential_savings: float = 0.0
    days: int = 0
    languages: dict[str, CountBreakdown] = field(default_factory=dict)
    teams: dict[str, CountBreakdown] = field(default_factory=dict)

    @property
    def acceptance_percent(self) -> float:
        return self.acceptance_rate * 100

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["generated_at"] = self.generated_at.isoformat()
        return data


@dataclass(frozen=True)
class Page:
    """One fetched page of a list endpoint.

    ``has_next`` is taken from the Link header; ``None`` means the server
    gave no hint and the caller must fall back to the page-size heuristic.
    """

    items: list
    has_next: Optional[bool] = None


@dataclass(frozen=True)
class IssueList:
    repository: str
    issues: list
    state: str = "open"
    fetched_at: Optional[datetime] = None
    pages_processed: int = 0

    @property
    def total_count(self) -> int:
        return len(self.issues)


@dataclass(frozen=True)
class OperationResult:
    """Outcome of an operation expected to partially fail in bulk."""

    success: bool
    data: Any = None
    error: str = ""

    @classmethod
    def ok(cls, data: Any = None) -> OperationResult:
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, error: str, data: Any = None) -> OperationResult:
        return cls(success=False, data=data, error=error)


@dataclass(frozen=True)
class AssignmentResult:
    issue_number: int
    assignee: str
    success: bool
    assigned_user: str = ""
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LabelResult:
    issue_number: int
    labels: tuple[str, ...]
    success: bool
    current_labels: tuple[str, ...] = ()
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PermissionCheck:
    """Result of probing one endpoint with the App's installation token."""

    name: str
    ok: bool
    detail: str = ""
    remedy: str = ""

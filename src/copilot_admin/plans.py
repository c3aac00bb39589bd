"""Published GitHub Copilot per-seat pricing."""

from __future__ import annotations

# ── Published Copilot seat prices (USD / seat / month) ──────────────────────

SEAT_PRICES: dict[str, float] = {
    "business": 19,
    "enterprise": 39,
}

DEFAULT_PLAN = "business"


def get_seat_price(plan_type: str | None) -> float:
    """Seat price for a billing ``plan_type``, falling back to Business."""
    key = (plan_type or DEFAULT_PLAN).lower()
    return SEAT_PRICES.get(key, SEAT_PRICES[DEFAULT_PLAN])


def get_cost_per_seat(plan_type: str | None = None,
                      override: float | None = None) -> float:
    """Resolve the cost per seat: explicit override first, then plan price."""
    if override is not None:
        return float(override)
    return float(get_seat_price(plan_type))

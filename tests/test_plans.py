"""Tests for seat pricing."""

from copilot_admin.plans import SEAT_PRICES, get_cost_per_seat, get_seat_price


class TestSeatPrices:
    def test_business(self):
        assert get_seat_price("business") == 19

    def test_enterprise(self):
        assert get_seat_price("Enterprise") == 39

    def test_unknown_falls_back_to_business(self):
        assert get_seat_price("mystery") == SEAT_PRICES["business"]
        assert get_seat_price(None) == 19


class TestCostPerSeat:
    def test_override_wins(self):
        assert get_cost_per_seat("enterprise", 25) == 25.0

    def test_zero_override_kept(self):
        assert get_cost_per_seat("enterprise", 0) == 0.0

    def test_plan_price(self):
        assert get_cost_per_seat("enterprise") == 39.0

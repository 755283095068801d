import pytest

from coworking_api.domain.booking.pricing import (
    PricingError,
    apply_promo,
    calculate_hours,
    calculate_reservation_price,
    compute_deposit_cents,
)

from .conftest import MEETING_ROOM_PRICING, OPEN_SPACE_PRICING


class TestCalculateReservationPrice:
    def test_hourly_within_first_tier(self):
        result = calculate_reservation_price(MEETING_ROOM_PRICING, "hourly", 4, 2)
        assert result["base_price"] == 60
        assert result["extra_charge"] == 0
        assert result["total_price"] == 60
        assert result["duration_unit"] == "hours"
        assert result["tier"]["max_people"] == 6

    def test_larger_tier_takes_over(self):
        result = calculate_reservation_price(MEETING_ROOM_PRICING, "hourly", 10, 2)
        assert result["tier"]["min_people"] == 7
        assert result["total_price"] == 100

    def test_extra_people_beyond_last_tier(self):
        result = calculate_reservation_price(MEETING_ROOM_PRICING, "hourly", 14, 2)
        assert result["base_price"] == 100
        # 2 extra people, 5€ each per hour, for 2 hours
        assert result["extra_charge"] == 20
        assert result["total_price"] == 120

    def test_daily_tier_rate(self):
        result = calculate_reservation_price(MEETING_ROOM_PRICING, "daily", 3)
        assert result["total_price"] == 180
        assert result["duration"] == 1

    def test_per_person_without_tiers(self):
        result = calculate_reservation_price(OPEN_SPACE_PRICING, "daily", 3)
        assert result["base_price"] == 25
        assert result["total_price"] == 75
        assert result["per_person"] is True

    def test_weekly_is_fixed_duration(self):
        result = calculate_reservation_price(OPEN_SPACE_PRICING, "weekly", 1)
        assert result["duration"] == 7
        assert result["total_price"] == 100

    def test_hourly_requires_positive_duration(self):
        with pytest.raises(PricingError):
            calculate_reservation_price(MEETING_ROOM_PRICING, "hourly", 2, 0)

    def test_unknown_type(self):
        with pytest.raises(PricingError):
            calculate_reservation_price(MEETING_ROOM_PRICING, "yearly", 2)


def test_calculate_hours_fractional():
    assert calculate_hours("09:00", "10:30") == 1.5


class TestApplyPromo:
    def test_percentage(self):
        assert apply_promo(100, "percentage", 10) == (10, 90)

    def test_fixed_floors_total_at_zero(self):
        assert apply_promo(100, "fixed", 150) == (150, 0)

    def test_free_item_has_no_price_effect(self):
        assert apply_promo(100, "free_item", 1) == (0, 100)


class TestComputeDeposit:
    def test_without_policy_holds_total(self):
        assert compute_deposit_cents(100.0, None) == 10000

    def test_disabled_policy_holds_total(self):
        assert compute_deposit_cents(100.0, {"enabled": False, "percentage": 50}) == 10000

    def test_percentage(self):
        assert compute_deposit_cents(100.0, {"enabled": True, "percentage": 50}) == 5000

    def test_fixed_amount_wins_over_percentage(self):
        assert compute_deposit_cents(100.0, {"enabled": True, "percentage": 50, "fixed_amount": 2000}) == 2000

    def test_minimum_amount(self):
        policy = {"enabled": True, "percentage": 10, "minimum_amount": 2000}
        assert compute_deposit_cents(100.0, policy) == 2000

"""Booking pricing - tiered space pricing, promo discounts and deposit amounts"""

from typing import Optional

from ...shared.validators import time_to_minutes

DURATION_UNITS = {"hourly": "hours", "daily": "days", "weekly": "weeks", "monthly": "months"}
FIXED_DURATIONS = {"daily": 1, "weekly": 7, "monthly": 30}

# reservation type -> (tier base rate key, tier extra-person rate key)
TIER_RATE_KEYS = {
    "hourly": ("hourly_rate", "extra_person_hourly"),
    "daily": ("daily_rate", "extra_person_daily"),
}


class PricingError(ValueError):
    """Raised for a reservation that cannot be priced"""


def calculate_hours(start_time: str, end_time: str) -> float:
    """Fractional hours between two HH:MM times on the same day"""
    return (time_to_minutes(end_time) - time_to_minutes(start_time)) / 60


def calculate_reservation_price(
    pricing: dict, reservation_type: str, people: int, duration_hours: float = 0
) -> dict:
    """
    Price a reservation against a space's pricing config.

    Tiers are walked by ascending min_people. A tier containing `people`
    sets the base rate and stops the walk. A tier that `people` overflows
    applies its base rate plus the extra-person rate, and the walk goes on so
    a larger tier can take over. Without any applicable tier, `per_person`
    multiplies the base price by the head count.
    """
    if reservation_type not in DURATION_UNITS:
        raise PricingError("Invalid reservation type")

    pricing = pricing or {}

    if reservation_type == "hourly":
        duration = duration_hours
        if duration <= 0:
            raise PricingError("End time must be after start time")
        base_price = (pricing.get("hourly") or 0) * duration
        multiplier = duration
    else:
        duration = FIXED_DURATIONS[reservation_type]
        base_price = pricing.get(reservation_type) or 0
        multiplier = 1

    applied_tier = None
    extra_charge = 0.0

    if reservation_type in TIER_RATE_KEYS and pricing.get("tiers"):
        rate_key, extra_key = TIER_RATE_KEYS[reservation_type]
        for tier in sorted(pricing["tiers"], key=lambda t: t.get("min_people", 0)):
            if people < tier.get("min_people", 0):
                continue
            if people <= tier.get("max_people", 0):
                applied_tier = tier
                base_price = (tier.get(rate_key) or 0) * multiplier
                extra_charge = 0.0
                break
            if tier.get(extra_key):
                applied_tier = tier
                base_price = (tier.get(rate_key) or 0) * multiplier
                extra_charge = (people - tier["max_people"]) * tier[extra_key] * multiplier

    if applied_tier:
        total_price = base_price + extra_charge
    elif pricing.get("per_person"):
        total_price = base_price * people
    else:
        total_price = base_price

    return {
        "base_price": round(base_price, 2),
        "extra_charge": round(extra_charge, 2),
        "total_price": round(total_price, 2),
        "duration": duration,
        "duration_unit": DURATION_UNITS[reservation_type],
        "per_person": bool(pricing.get("per_person")),
        "tier": applied_tier,
    }


def apply_promo(base_price: float, discount_type: Optional[str], discount_value: float) -> tuple[float, float]:
    """Return (discount, total) with the total floored at zero"""
    if discount_type == "percentage":
        discount = base_price * discount_value / 100
    elif discount_type == "fixed":
        discount = discount_value
    else:
        discount = 0
    return round(discount, 2), round(max(0, base_price - discount), 2)


def compute_deposit_cents(total_price: float, deposit_policy: Optional[dict]) -> int:
    """Card hold amount in cents for a booking total in euros"""
    total_cents = round(total_price * 100)
    if not deposit_policy or not deposit_policy.get("enabled"):
        return total_cents

    deposit = total_cents
    if deposit_policy.get("fixed_amount"):
        deposit = int(deposit_policy["fixed_amount"])
    elif deposit_policy.get("percentage"):
        deposit = round(total_cents * deposit_policy["percentage"] / 100)

    minimum = deposit_policy.get("minimum_amount")
    if minimum and deposit < minimum:
        deposit = int(minimum)
    return deposit

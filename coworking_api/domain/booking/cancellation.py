"""Cancellation policy - business-day countdown and fee tiers"""

from datetime import date, timedelta
from typing import Optional

MEETING_ROOM_TYPES = {
    "meeting-room",
    "meeting-room-glass",
    "meeting-room-floor",
    "salle-verriere",
    "salle-etage",
}

DEFAULT_MEETING_ROOM_POLICY = [
    {"days_before_booking": 22, "charge_percentage": 0},
    {"days_before_booking": 15, "charge_percentage": 30},
    {"days_before_booking": 8, "charge_percentage": 50},
    {"days_before_booking": 0, "charge_percentage": 70},
]

DEFAULT_OPEN_SPACE_POLICY = [
    {"days_before_booking": 7, "charge_percentage": 0},
    {"days_before_booking": 3, "charge_percentage": 50},
    {"days_before_booking": 0, "charge_percentage": 100},
]


def business_days_until(booking_date: date, today: date) -> int:
    """Monday-Friday days after `today`, up to and including `booking_date`"""
    if booking_date <= today:
        return 0

    count = 0
    current = today + timedelta(days=1)
    while current <= booking_date:
        if current.weekday() < 5:
            count += 1
        current += timedelta(days=1)
    return count


def is_meeting_room(space_type: Optional[str]) -> bool:
    return space_type in MEETING_ROOM_TYPES


def get_cancellation_policy(space_type: Optional[str], settings=None) -> list[dict]:
    """Policy tiers for a space type, from booking settings when configured"""
    if is_meeting_room(space_type):
        configured = settings.cancellation_policy_meeting_rooms if settings else None
        return configured or DEFAULT_MEETING_ROOM_POLICY
    configured = settings.cancellation_policy_open_space if settings else None
    return configured or DEFAULT_OPEN_SPACE_POLICY


def resolve_charge_percentage(status: str, days_until_booking: int, policy: list[dict]) -> int:
    """Pending bookings cancel for free; otherwise the first tier (largest days first) reached wins"""
    if status == "pending":
        return 0

    for tier in sorted(policy, key=lambda t: t["days_before_booking"], reverse=True):
        if days_until_booking >= tier["days_before_booking"]:
            return tier["charge_percentage"]
    return 100


def compute_cancellation_fees(total_price_cents: int, deposit_cents: int, charge_percentage: int) -> tuple[int, int]:
    """
    Fee is a share of the booking total, capped by what the card hold covers.

    Returns:
        (cancellation_fee_cents, refund_cents)
    """
    fee = round(total_price_cents * charge_percentage / 100)
    fee = min(fee, deposit_cents)
    return fee, deposit_cents - fee


def cancellation_message(charge_percentage: int, refund_amount: float) -> str:
    if charge_percentage == 0:
        return "Aucun frais appliqué. L'empreinte bancaire est annulée."
    if charge_percentage == 100:
        return "Annulation tardive. Le montant total est retenu."
    return f"Frais d'annulation de {charge_percentage}% appliqués. {refund_amount:.2f}€ sera remboursé."

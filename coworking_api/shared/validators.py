"""Shared validation utilities"""

import re
from datetime import date, datetime
from typing import Optional

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
PIN_PATTERN = re.compile(r"^\d{4}$")
SSN_PATTERN = re.compile(r"^\d{15}$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()
    if not re.match(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$", email):
        raise ValueError("Invalid email format")
    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a French or international phone number and strip spacing.

    Accepts 0XXXXXXXXX or +<country><number> (8 to 15 digits).
    """
    if not phone:
        return phone

    cleaned = re.sub(r"[\s.\-()]", "", phone)
    if re.match(r"^0\d{9}$", cleaned) or re.match(r"^\+\d{8,15}$", cleaned):
        return cleaned
    raise ValueError("Invalid phone number")


def validate_date_string(value: Optional[str]) -> Optional[str]:
    """Validate a YYYY-MM-DD calendar date"""
    if value is None:
        return value
    if not DATE_PATTERN.match(value):
        raise ValueError("Date must be in YYYY-MM-DD format")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError as e:
        raise ValueError("Invalid calendar date") from e
    return value


def validate_time_string(value: Optional[str]) -> Optional[str]:
    """Validate a 24h HH:MM time"""
    if value is None:
        return value
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format")
    return value


def validate_pin(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not PIN_PATTERN.match(value):
        raise ValueError("PIN must be exactly 4 digits")
    return value


def validate_social_security_number(value: Optional[str]) -> Optional[str]:
    """French social security number: 15 digits once spaces are removed"""
    if not value:
        return value
    cleaned = value.replace(" ", "")
    if not SSN_PATTERN.match(cleaned):
        raise ValueError("Social security number must be 15 digits")
    return cleaned


def parse_date(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(total: int) -> str:
    total %= 24 * 60
    return f"{total // 60:02d}:{total % 60:02d}"

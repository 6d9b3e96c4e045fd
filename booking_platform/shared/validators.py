"""Shared validation utilities"""

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..config import BOOKING_STEP_MINUTES, MAX_BOOKING_MINUTES, MIN_BOOKING_MINUTES
from .exceptions import ValidationError

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MINUTES_PER_DAY = 24 * 60


def parse_time(value: str) -> int:
    """
    Parse an ``HH:MM`` string into minutes from midnight.

    Raises:
        ValidationError: If the string is not a valid 24h time
    """
    if not isinstance(value, str):
        raise ValidationError("Invalid time format. Use HH:MM format")
    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise ValidationError(f"Invalid time '{value}'. Use HH:MM format")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_time(minutes: int) -> str:
    """Format minutes from midnight as ``HH:MM``"""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date(value) -> date:
    """Parse a ``YYYY-MM-DD`` string (dates pass through unchanged)"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD") from e


def validate_duration(duration: int) -> int:
    """Duration must be between 30 and 240 minutes and a multiple of 30"""
    if (
        not isinstance(duration, int)
        or isinstance(duration, bool)
        or duration < MIN_BOOKING_MINUTES
        or duration > MAX_BOOKING_MINUTES
        or duration % BOOKING_STEP_MINUTES != 0
    ):
        raise ValidationError(
            f"Duration must be between {MIN_BOOKING_MINUTES} and {MAX_BOOKING_MINUTES} "
            f"minutes and a multiple of {BOOKING_STEP_MINUTES}"
        )
    return duration


def round_half_up(value: float, places: int = 0) -> float:
    """Round like a cashier would (0.5 goes up), not banker's rounding"""
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def clean_text(value: Optional[str], max_length: int) -> Optional[str]:
    """Strip free text and enforce a maximum length"""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > max_length:
        raise ValidationError(f"Text cannot exceed {max_length} characters")
    return value

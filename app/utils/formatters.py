"""
Formatting helpers for JSON responses and CSV exports.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime, timezone
from typing import Union, Optional


def iso_date(value: Optional[date]) -> Optional[str]:
    """Format a date as YYYY-MM-DD, or None."""
    if value is None:
        return None
    return value.isoformat()


def iso_datetime(value: Optional[datetime]) -> Optional[str]:
    """
    Format a datetime as ISO 8601 in UTC.

    Naive datetimes are assumed to already be UTC (SQLite drops tzinfo).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def money(value: Union[int, float, Decimal, str, None]) -> Optional[float]:
    """
    Convert a stored amount to a JSON number.

    Examples:
        money(Decimal('10.50')) -> 10.5
        money(None) -> None
    """
    if value is None or value == "":
        return None
    try:
        return float(Decimal(str(value)))
    except (InvalidOperation, ValueError, TypeError):
        return None


def money_str(value: Union[int, float, Decimal, str, None], decimals: int = 2) -> str:
    """
    Format an amount with a fixed number of decimals for CSV output.

    Examples:
        money_str(1500) -> "1500.00"
        money_str(None) -> ""
    """
    if value is None or value == "":
        return ""
    try:
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return ""
    return str(num.quantize(Decimal(10) ** -decimals))


def month_label(value: Optional[date]) -> str:
    """Short month label used to group reports ("Jan 2024"), "Unknown" when missing."""
    if value is None:
        return "Unknown"
    return value.strftime('%b %Y')

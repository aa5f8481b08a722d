"""Parsing utilities for JSON request payloads."""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Any, Optional


def parse_decimal(value: Any, field: str, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """
    Parse a JSON number or numeric string to Decimal.

    Empty values return ``default``.

    Raises:
        ValueError: if the value is not numeric.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return default

    if isinstance(value, bool):
        raise ValueError(f'Invalid number for {field}')

    try:
        decimal_value = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f'Invalid number for {field}: {value}')

    if not decimal_value.is_finite():
        raise ValueError(f'Invalid number for {field}: {value}')

    return decimal_value


def parse_iso_date(value: Any, field: str) -> Optional[date]:
    """
    Parse a YYYY-MM-DD string to a date. Empty values return None.

    Raises:
        ValueError: if the value is not a valid ISO date.
    """
    if value is None:
        return None
    if isinstance(value, date):
        return value

    cleaned = str(value).strip()
    if not cleaned:
        return None

    try:
        return datetime.strptime(cleaned, '%Y-%m-%d').date()
    except ValueError:
        raise ValueError(f'Invalid date for {field}. Use YYYY-MM-DD')


def parse_bool(value: Any, default: bool = False) -> bool:
    """Interpret JSON booleans and the usual string spellings."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def clean_str(value: Any) -> Optional[str]:
    """Strip a string value; blank strings become None."""
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None

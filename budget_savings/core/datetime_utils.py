"""
Datetime utilities for naive-UTC timestamps and calendar-month checks
"""

from datetime import date, datetime, timezone
from typing import Dict, Any, Optional, Union

DateLike = Union[date, datetime, str]

def utcnow() -> datetime:
    """Current time as a naive UTC datetime (the storage convention)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

def convert_timezone_aware_datetimes(data: Dict[str, Any], datetime_fields: list = None) -> Dict[str, Any]:
    """
    Convert timezone-aware datetimes to naive UTC before they reach the database

    Args:
        data: Dictionary containing data with potential datetime fields
        datetime_fields: List of field names that contain datetimes. If None, checks common fields.

    Returns:
        Dictionary with converted datetime fields
    """
    if datetime_fields is None:
        # Common datetime field names
        datetime_fields = ['date', 'deadline', 'created_at', 'updated_at']

    for field in datetime_fields:
        if data.get(field) and isinstance(data[field], datetime):
            data[field] = to_naive_utc(data[field])

    return data

def parse_datetime(value: Optional[DateLike]) -> Optional[datetime]:
    """
    Coerce a date, datetime or ISO string into a naive UTC datetime.
    A bare date means midnight of that day. Returns None for anything unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return to_naive_utc(datetime.fromisoformat(value))
        except ValueError:
            return None
    return None

def is_same_month(value: Optional[DateLike], now: Optional[datetime] = None) -> bool:
    """True when value falls in the same calendar month and year as now"""
    moment = parse_datetime(value)
    if moment is None:
        return False
    now = now or utcnow()
    return moment.year == now.year and moment.month == now.month

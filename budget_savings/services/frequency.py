"""
Frequency Normalizer
Converts amounts tagged with a recurrence frequency into monthly equivalents
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from budget_savings.core.constants import Frequency

ZERO = Decimal("0")
WEEKS_PER_MONTH = Decimal("4.33")  # Average weeks per month
DAYS_PER_MONTH = Decimal("30")
MONTHS_PER_YEAR = Decimal("12")

def to_decimal(value: Any) -> Decimal:
    """
    Lenient numeric conversion. Anything that is not a finite number becomes 0.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO
    if not result.is_finite():
        return ZERO
    return result

def get_field(record: Any, name: str, default: Any = None) -> Any:
    """Read a field from an ORM object, a pydantic model or a plain mapping"""
    if record is None:
        return default
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)

def normalize_to_monthly(amount: Any, frequency: Optional[str]) -> Decimal:
    """
    Monthly-equivalent of an amount.

    monthly and one-time amounts count at face value, weekly ones are scaled
    by 4.33, daily ones by 30 and yearly ones are divided by 12. A missing or
    unknown frequency is treated as monthly.
    """
    value = to_decimal(amount)
    freq = frequency.value if isinstance(frequency, Frequency) else frequency

    if freq == Frequency.WEEKLY.value:
        return value * WEEKS_PER_MONTH
    if freq == Frequency.YEARLY.value:
        return value / MONTHS_PER_YEAR
    if freq == Frequency.DAILY.value:
        return value * DAYS_PER_MONTH
    return value

"""Date manipulation utilities"""

from datetime import date, datetime
from dateutil.relativedelta import relativedelta
from scheme_tracker.domain.exceptions import InvalidDateError


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month (Jan 31 + 1 → Feb 28/29)"""
    return from_date + relativedelta(months=months)


def parse_date(value: date | datetime | str | None, field: str = "date") -> date:
    """
    Coerce an ISO date (or datetime) into a date.

    Raises:
        InvalidDateError: On a missing or unparsable value
    """
    if value is None:
        raise InvalidDateError(f"{field} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        # Timestamps like "2024-01-31T00:00:00Z" keep only their calendar date
        return date.fromisoformat(value.strip()[:10])
    except (ValueError, AttributeError) as e:
        raise InvalidDateError(f"{field} is not a valid ISO date: {value!r}") from e

# estate_payments/utils/date_converter.py

from datetime import date, datetime, timedelta
from typing import Optional, Union

from estate_payments.constants import DATE_FORMAT

# Calendar dates travel as "YYYY-MM-DD" strings with no time zone part.

def to_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Accepts a date, a datetime or a YYYY-MM-DD string (any time part is dropped)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        date_part = value.strip().split("T")[0].split(" ")[0]
        return datetime.strptime(date_part, DATE_FORMAT).date()
    raise TypeError(f"Cannot convert {type(value).__name__} to a calendar date.")

def to_date_str(value: Optional[date]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime(DATE_FORMAT)

def to_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    # Stored timestamps may carry a trailing "Z"
    return datetime.fromisoformat(value.replace("Z", "+00:00"))

def to_datetime_str(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None

def add_days(start: date, days: int) -> date:
    return start + timedelta(days=days)

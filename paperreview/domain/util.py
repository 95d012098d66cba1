"""Helpers and utilities."""

from typing import Optional, Union
from datetime import datetime

from dateutil.parser import parse as parse_date
from pytz import UTC


def get_tzaware_utc_now() -> datetime:
    """Generate a datetime for the current moment in UTC."""
    return datetime.now(UTC)


def coerce_datetime(value: Optional[Union[str, datetime]]) \
        -> Optional[datetime]:
    """Parse ISO 8601 strings; make naive datetimes UTC."""
    if value is None:
        return None
    if isinstance(value, str):
        value = parse_date(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value

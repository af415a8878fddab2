"""Timestamp parsing for the date formats the banking backend emits"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Optional

# Epoch values at or below this are not plausible transaction timestamps
MIN_EPOCH_SECONDS = 1_000_000_000
# Values above this are epoch milliseconds
MILLISECOND_THRESHOLD = 100_000_000_000


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a backend timestamp into a datetime.

    Accepts datetimes, dates, epoch numbers (seconds or milliseconds),
    numeric strings, compact YYYYMMDD strings and ISO-8601 strings.
    Returns None for anything unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, (int, float, Decimal)):
        return _from_epoch(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text or text == "Invalid Date":
        return None
    if text.isascii() and text.isdigit():
        if len(text) == 8:
            return parse_compact_date(text)
        try:
            return _from_epoch(int(text))
        except ValueError:  # beyond the int string conversion limit
            return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    try:
        return datetime.strptime(text, "%Y/%m/%d")
    except ValueError:
        return None


def parse_compact_date(text: str, time_text: Optional[str] = None) -> Optional[datetime]:
    """Parse YYYYMMDD with an optional HHMMSS time part"""
    try:
        day = datetime.strptime(text, "%Y%m%d")
    except (TypeError, ValueError):
        return None
    if time_text:
        try:
            moment = datetime.strptime(time_text.strip(), "%H%M%S").time()
        except ValueError:
            return day
        return datetime.combine(day.date(), moment)
    return day


def _from_epoch(raw: Any) -> Optional[datetime]:
    try:
        number = float(raw)
    except (ArithmeticError, ValueError):
        return None
    if number != number:  # NaN
        return None
    if number <= MIN_EPOCH_SECONDS:
        return None
    if number >= MILLISECOND_THRESHOLD:
        number = number / 1000
    try:
        return datetime.fromtimestamp(number, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None

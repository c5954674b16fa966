"""Calendar date and HH:MM helpers.

Times are 24-hour, zero-padded "HH:MM" strings. Dates are plain
``datetime.date`` values on the machine's local calendar.
"""

import re
from datetime import date, datetime, timedelta
from typing import List, Sequence, Tuple, Union

from errors import InvalidTimeError

TIME_PATTERN = re.compile(r'^(\d{2}):(\d{2})$')


def normalize_time(raw: str) -> str:
    """Strip a time token and pad a single-digit hour ("8:00" -> "08:00")."""
    token = raw.strip()
    if len(token) == 4:
        token = "0" + token
    return token


def parse_time(hhmm: str) -> Tuple[int, int]:
    """Parse a time token into (hour, minute).

    Raises:
        InvalidTimeError: If the token is not HH:MM or is out of range
    """
    match = TIME_PATTERN.match(normalize_time(hhmm))
    if not match:
        raise InvalidTimeError(hhmm)

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidTimeError(hhmm)
    return hour, minute


def canonical_time(hhmm: str) -> str:
    """Validated, zero-padded form of a time token ("8:00" -> "08:00").

    Raises:
        InvalidTimeError: If the token is not a valid time
    """
    hour, minute = parse_time(hhmm)
    return f"{hour:02d}:{minute:02d}"


def parse_times(value: Union[str, Sequence[str]]) -> List[str]:
    """Turn user input into a list of normalized times.

    Accepts a comma-separated string ("8:00, 20:00") or a sequence of
    tokens. Empty tokens are dropped; order and duplicates are kept.

    Raises:
        InvalidTimeError: On the first token that is not a valid time
    """
    tokens = value.split(",") if isinstance(value, str) else list(value)

    times = []
    for token in tokens:
        normalized = normalize_time(token)
        if not normalized:
            continue
        times.append(canonical_time(normalized))
    return times


def as_date(value: Union[date, str]) -> date:
    """Accept a date or a "YYYY-MM-DD" string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def local_today() -> date:
    """Today's date on the machine's local calendar."""
    return date.today()


def trailing_window(today: date, days: int = 7) -> List[date]:
    """The ``days`` calendar dates ending at and including ``today``."""
    return [today - timedelta(days=offset) for offset in range(days)]

"""UTC clock and parsing helpers used at the HTTP boundary.

Every timestamp inside the service is a naive ``datetime`` in UTC. Values
arriving with an offset are converted with pytz and stripped of tzinfo.
"""

from datetime import date, datetime, time, timedelta

import pytz


def utcnow():
    return datetime.now(pytz.utc).replace(tzinfo=None)


def to_naive_utc(value):
    """Normalise a datetime to naive UTC. Naive input is assumed to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(pytz.utc).replace(tzinfo=None)


def parse_datetime(value):
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into naive UTC.

    Raises ValueError for anything that is not a string or not ISO-8601.
    """
    if not isinstance(value, str):
        raise ValueError("timestamp must be an ISO-8601 string")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return to_naive_utc(datetime.fromisoformat(text))


def parse_date(value):
    if not isinstance(value, str):
        raise ValueError("date must be a YYYY-MM-DD string")
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def parse_time(value):
    # HH:MM or HH:MM:SS
    if not isinstance(value, str):
        raise ValueError("time must be a HH:MM string")
    return time.fromisoformat(value.strip())


def day_bounds(day):
    """Return the half-open [start, end) range covering one calendar day."""
    start = datetime.combine(day, time(0, 0))
    if day == date.max:
        # no following day to bound by
        return start, datetime.max
    return start, datetime.combine(day + timedelta(days=1), time(0, 0))

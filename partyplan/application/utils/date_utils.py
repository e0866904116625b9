from __future__ import annotations

import re
from datetime import date, datetime

from partyplan.domain.entities.availability import Slot

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

MONTH_NAMES = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "sept": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_ISO_PREFIX = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
_ORDINAL_SUFFIX = re.compile(r"\b(\d{1,2})(st|nd|rd|th)\b", re.IGNORECASE)
_DAY_FIRST = re.compile(r"\b(\d{1,2})\s+([a-z]+)\s+(\d{4})\b")
_MONTH_FIRST = re.compile(r"\b([a-z]+)\s+(\d{1,2})\s+(\d{4})\b")
_NUMERIC_DAY_FIRST = re.compile(r"\b(\d{1,2})[/.](\d{1,2})[/.](\d{4})\b")
_MERIDIEM_TIME = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b")
_CLOCK_TIME = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\b")


def parse_flexible_date(value: object) -> date | None:
    """Parse a date from a date/datetime object, an ISO string or legacy free text.

    Never raises. Returns None when nothing usable is found, and callers decide
    what an unparsable date means at their call site.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    # ISO strings keep their calendar fields; a trailing time or offset is ignored
    iso_match = _ISO_PREFIX.match(text)
    if iso_match:
        return _safe_date(int(iso_match.group(1)), int(iso_match.group(2)), int(iso_match.group(3)))

    cleaned = _ORDINAL_SUFFIX.sub(r"\1", text).lower().replace(",", " ")

    day_first = _DAY_FIRST.search(cleaned)
    if day_first:
        month = MONTH_NAMES.get(day_first.group(2))
        if month:
            return _safe_date(int(day_first.group(3)), month, int(day_first.group(1)))

    month_first = _MONTH_FIRST.search(cleaned)
    if month_first:
        month = MONTH_NAMES.get(month_first.group(1))
        if month:
            return _safe_date(int(month_first.group(3)), month, int(month_first.group(2)))

    numeric = _NUMERIC_DAY_FIRST.search(cleaned)
    if numeric:
        return _safe_date(int(numeric.group(3)), int(numeric.group(2)), int(numeric.group(1)))

    return None


def to_comparable_date_string(value: object) -> str | None:
    """Canonical YYYY-MM-DD form used for every date comparison."""
    parsed = parse_flexible_date(value)
    if parsed is None:
        return None
    return parsed.isoformat()


def is_same_day(a: object, b: object) -> bool:
    left = to_comparable_date_string(a)
    right = to_comparable_date_string(b)
    return left is not None and left == right


def weekday_name(value: object) -> str | None:
    parsed = parse_flexible_date(value)
    if parsed is None:
        return None
    return WEEKDAY_NAMES[parsed.weekday()]


def is_weekend(value: object) -> bool:
    parsed = parse_flexible_date(value)
    return parsed is not None and parsed.weekday() >= 5


def days_between(start: object, end: object) -> int | None:
    """Whole days from start to end, or None if either side is unparsable."""
    start_date = parse_flexible_date(start)
    end_date = parse_flexible_date(end)
    if start_date is None or end_date is None:
        return None
    return (end_date - start_date).days


def infer_slot_from_time(text: str | None) -> Slot | None:
    """Map a free-text party time onto a half-day slot. Returns Slot or None."""
    if not text:
        return None
    normalized = str(text).lower().strip()

    if "morning" in normalized:
        return Slot.MORNING
    if "afternoon" in normalized:
        return Slot.AFTERNOON

    meridiem = _MERIDIEM_TIME.search(normalized)
    if meridiem:
        return Slot.MORNING if meridiem.group(3) == "am" else Slot.AFTERNOON
    if re.search(r"\bam\b", normalized):
        return Slot.MORNING
    if re.search(r"\bpm\b", normalized):
        return Slot.AFTERNOON

    clock = _CLOCK_TIME.search(normalized)
    if clock:
        hour = int(clock.group(1))
        if 0 <= hour <= 23:
            return Slot.MORNING if hour < 13 else Slot.AFTERNOON

    return None


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None

"""
Normalize the free-form publish dates shown next to podcast episodes.

Handles relative text ("2 days ago"), day-first and month-first dates with
or without a year ("14 Nov 2024", "Nov 14", "14 NOV"), and anything else
dateutil can parse. Unparseable input is echoed back with no ISO date.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from models import CanonicalDate, NormalizedEpisodeRecord, RawEpisodeRecord

MONTHS = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4, "MAY": 5, "JUN": 6,
    "JUL": 7, "AUG": 8, "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}

# Fixed English names so output does not depend on the process locale
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

RELATIVE_RE = re.compile(
    r"^(\d+)\s+(SECOND|MINUTE|HOUR|DAY|WEEK|MONTH|YEAR)S?\s+AGO$",
    re.IGNORECASE,
)
DAY_RE = re.compile(r"^\d{1,2}$")
YEAR_RE = re.compile(r"^\d{4}$")


def format_full(value: date) -> str:
    """Day-month-year long form, e.g. '14 November 2024'."""
    return f"{value.day} {MONTH_NAMES[value.month - 1]} {value.year}"


def _resolve_now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def _utc_date(instant: datetime) -> date:
    if instant.tzinfo is not None:
        instant = instant.astimezone(timezone.utc)
    return instant.date()


def _subtract(now: datetime, amount: int, unit: str) -> datetime:
    if unit == "SECOND":
        return now - timedelta(seconds=amount)
    if unit == "MINUTE":
        return now - timedelta(minutes=amount)
    if unit == "HOUR":
        return now - timedelta(hours=amount)
    if unit == "DAY":
        return now - timedelta(days=amount)
    if unit == "WEEK":
        return now - timedelta(days=amount * 7)
    if unit == "MONTH":
        return now - relativedelta(months=amount)
    return now - relativedelta(years=amount)


def _parse_relative(cleaned: str, now: datetime) -> date | None:
    match = RELATIVE_RE.match(cleaned)
    if not match:
        return None
    amount = int(match.group(1))
    unit = match.group(2).upper()
    try:
        return _utc_date(_subtract(now, amount, unit))
    except (OverflowError, ValueError):
        return None


def _month_of(token: str) -> int | None:
    return MONTHS.get(token[:3])


def _parse_absolute(cleaned: str, now: datetime) -> date | None:
    """
    Match "Day Month [Year]" or "Month Day [Year]".

    Returns None when neither pattern applies or the day/month pair is not
    a real calendar date. A missing year means the current year, or the
    previous one if that would put the date in the future.
    """
    parts = cleaned.split()
    if len(parts) < 2:
        return None

    day = month = year = None
    if DAY_RE.match(parts[0]):
        day = int(parts[0])
        month = _month_of(parts[1])
    elif DAY_RE.match(parts[1]):
        month = _month_of(parts[0])
        day = int(parts[1])
    else:
        return None

    if month is None:
        return None
    if len(parts) >= 3 and YEAR_RE.match(parts[2]):
        year = int(parts[2])

    today = _utc_date(now)
    if year is not None:
        try:
            return date(year, month, day)
        except ValueError:
            # e.g. 31 FEB 2024
            return None
    try:
        candidate = date(today.year, month, day)
    except ValueError:
        # 29 FEB outside a leap year can only be last year's
        candidate = None
    if candidate is None or candidate > today:
        try:
            candidate = date(today.year - 1, month, day)
        except ValueError:
            return None
    return candidate


def _parse_generic(cleaned: str, now: datetime) -> date | None:
    today = _utc_date(now)
    default = datetime(today.year, today.month, today.day)
    try:
        parsed = date_parser.parse(cleaned, default=default)
    except (ValueError, OverflowError):
        return None
    return _utc_date(parsed)


def normalize_date(raw: Any, now: datetime | None = None) -> CanonicalDate:
    """
    Convert a raw publish-date string into a canonical date.

    Args:
        raw: Date text as shown on the page (may be None)
        now: Reference instant for relative dates and year inference;
            defaults to the current UTC time

    Returns:
        CanonicalDate(full, iso). On failure ``full`` is ``raw`` unchanged
        and ``iso`` is None.
    """
    if not raw or not isinstance(raw, str):
        return CanonicalDate(raw, None)

    now = _resolve_now(now)
    cleaned = raw.replace(",", "").strip().upper()

    resolved = _parse_relative(cleaned, now)
    if resolved is None and not RELATIVE_RE.match(cleaned):
        resolved = _parse_absolute(cleaned, now)
        if resolved is None and not _is_day_month_shape(cleaned):
            resolved = _parse_generic(cleaned, now)

    if resolved is None:
        return CanonicalDate(raw, None)
    return CanonicalDate(format_full(resolved), resolved.isoformat())


def _is_day_month_shape(cleaned: str) -> bool:
    """True when the text has a known month next to a 1-2 digit day."""
    parts = cleaned.split()
    if len(parts) < 2:
        return False
    if DAY_RE.match(parts[0]):
        return _month_of(parts[1]) is not None
    if DAY_RE.match(parts[1]):
        return _month_of(parts[0]) is not None
    return False


def normalize_records(
    records: Iterable[RawEpisodeRecord],
    now: datetime | None = None,
) -> list[NormalizedEpisodeRecord]:
    """Attach canonical dates to raw records, keeping their order."""
    now = _resolve_now(now)
    normalized = []
    for record in records:
        parsed = normalize_date(record.raw_date, now=now)
        normalized.append(
            NormalizedEpisodeRecord(
                title=record.title,
                description=record.description,
                date=parsed.full,
                date_iso=parsed.iso,
                share_url=record.share_url,
            )
        )
    return normalized

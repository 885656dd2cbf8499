"""Normalize the date strings found in feeds, pages and URLs to UTC timestamps."""

import logging
import re
from datetime import datetime, timezone, timedelta
from typing import Optional

from dateutil import parser as dateutil_parser

logger = logging.getLogger('date_parser')

TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
    "CET": timezone(timedelta(hours=1)),
    "CEST": timezone(timedelta(hours=2)),
}

MONTH_NAMES = [
    'january', 'february', 'march', 'april', 'may', 'june',
    'july', 'august', 'september', 'october', 'november', 'december',
]

# missing components fall back to the first of the month, midnight
_DEFAULT = datetime(2000, 1, 1)
# parsing again against a second default exposes strings that carry no year
_ALT_DEFAULT = datetime(2001, 1, 1)

_PARSE_ERRORS = (ValueError, OverflowError, TypeError, IndexError)

_MONTH_DAY_YEAR = re.compile(r'([A-Za-z]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})')
_NUMERIC_MDY = re.compile(r'(?<!\d)(\d{1,2})[/-](\d{1,2})[/-](\d{4})(?!\d)')
_NUMERIC_YMD = re.compile(r'(?<!\d)(\d{4})[/-](\d{1,2})[/-](\d{1,2})(?!\d)')
_DAY_MONTH_YEAR = re.compile(r'(?<!\d)(\d{1,2})(?:st|nd|rd|th)?\s+([A-Za-z]+),?\s+(\d{4})')
_MONTH_YEAR = re.compile(r'([A-Za-z]+),?\s+(\d{4})')

_URL_YMD_PATH = re.compile(r'/(\d{4})/(\d{1,2})/(\d{1,2})(?=/|$)')
_URL_YMD_DASHED = re.compile(r'(?<!\d)(\d{4})-(\d{2})-(\d{2})(?!\d)')
_URL_YM_PATH = re.compile(r'/(\d{4})/(\d{1,2})(?=/|$)')


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _month_index(name: str) -> Optional[int]:
    """1-based month for a full English month name."""
    try:
        return MONTH_NAMES.index(name.lower()) + 1
    except ValueError:
        return None


def _build(year: int, month: int, day: int) -> Optional[datetime]:
    try:
        return datetime(year, month, day, tzinfo=timezone.utc)
    except _PARSE_ERRORS:
        return None


def _native_parse(text: str) -> Optional[datetime]:
    if not text:
        return None

    iso_text = text[:-1] + '+00:00' if text[-1] in 'Zz' else text
    try:
        return _to_utc(datetime.fromisoformat(iso_text))
    except _PARSE_ERRORS:
        pass

    try:
        parsed = dateutil_parser.parse(text, default=_DEFAULT, tzinfos=TZINFOS)
        if parsed.year != dateutil_parser.parse(text, default=_ALT_DEFAULT, tzinfos=TZINFOS).year:
            return None
        return _to_utc(parsed)
    except _PARSE_ERRORS:
        return None


def _manual_parse(text: str) -> Optional[datetime]:
    for match in _MONTH_DAY_YEAR.finditer(text):
        month = _month_index(match.group(1))
        if month:
            result = _build(int(match.group(3)), month, int(match.group(2)))
            if result:
                return result

    match = _NUMERIC_MDY.search(text)
    if match:
        result = _build(int(match.group(3)), int(match.group(1)), int(match.group(2)))
        if result:
            return result

    match = _NUMERIC_YMD.search(text)
    if match:
        result = _build(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        if result:
            return result

    for match in _DAY_MONTH_YEAR.finditer(text):
        month = _month_index(match.group(2))
        if month:
            result = _build(int(match.group(3)), month, int(match.group(1)))
            if result:
                return result

    for match in _MONTH_YEAR.finditer(text):
        month = _month_index(match.group(1))
        if month:
            result = _build(int(match.group(2)), month, 1)
            if result:
                return result

    return None


def try_parse_date(raw) -> Optional[datetime]:
    """Like ``parse_date`` but returns None instead of falling back to now."""
    text = raw.strip() if isinstance(raw, str) else ""

    parsed = _native_parse(text)
    if parsed is None:
        collapsed = re.sub(r'\s+', ' ', text)
        if collapsed != text:
            parsed = _native_parse(collapsed)
        if parsed is None:
            parsed = _manual_parse(collapsed)
    return parsed


def parse_date(raw) -> datetime:
    """Parse ``raw`` into an aware UTC datetime.

    Tries ISO and general (RFC 2822, "Month D, YYYY h:mm AM") parsing on
    the trimmed string, then on the whitespace-collapsed string, then the
    month-name and numeric patterns seen on vendor pages. Never raises:
    unparseable input is logged and the current time is returned.
    """
    parsed = try_parse_date(raw)
    if parsed is None:
        logger.warning(f"Could not parse date: {raw!r}, using current time")
        return datetime.now(timezone.utc)
    return parsed


def extract_date_from_url(url: str, allow_month_only: bool = True) -> Optional[str]:
    """Return the ``YYYY-MM-DD`` date encoded in a permalink path, if any.

    A path carrying only year and month (``/2024/03/slug``) yields the first
    of that month unless ``allow_month_only`` is False.
    """
    if not url:
        return None

    for pattern in (_URL_YMD_PATH, _URL_YMD_DASHED):
        for match in pattern.finditer(url):
            year, month, day = (int(g) for g in match.groups())
            if 1990 <= year <= 2100 and _build(year, month, day):
                return f"{year:04d}-{month:02d}-{day:02d}"

    if not allow_month_only:
        return None

    for match in _URL_YM_PATH.finditer(url):
        year, month = int(match.group(1)), int(match.group(2))
        if 1990 <= year <= 2100 and 1 <= month <= 12:
            return f"{year:04d}-{month:02d}-01"

    return None


def is_plausible(value: Optional[datetime]) -> bool:
    if value is None:
        return False
    return 2000 <= value.year <= datetime.now(timezone.utc).year + 1

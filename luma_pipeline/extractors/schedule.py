"""Event start/end time and timezone extraction.

Two strategies, tried in order:
1. Visible text: a "1 Jun 2025 10:00 AM - 1:00 PM" style line in the DOM
2. Embedded JSON: the "start_at"/"end_at" fields of the page payload

Timezones are gathered from several overlapping sources. Each source is a
named rule; the precedence tuples below list them from weakest to strongest
and the strongest rule that matched decides.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from bs4 import BeautifulSoup

from luma_pipeline.extractors.embedded import extract_json_string
from luma_pipeline.models import Schedule
from luma_pipeline.normalizers.text import normalize_text

DEFAULT_DURATION = timedelta(hours=3)
DEFAULT_TIMEZONE = "UTC"

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
_MONTH = r"(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?"

DATE_PATTERNS = [
    # 1 Jun 2025
    re.compile(rf"\b(?P<day>\d{{1,2}})\s+(?P<month>{_MONTH}),?\s+(?P<year>\d{{4}})\b", re.I),
    # Jun 1, 2025
    re.compile(rf"\b(?P<month>{_MONTH})\s+(?P<day>\d{{1,2}}),?\s+(?P<year>\d{{4}})\b", re.I),
]
TIME_PATTERN = re.compile(r"\b(\d{1,2}):(\d{2})(?:\s*([AaPp][Mm]))?\b")

SCHEDULE_TAGS = ["time", "p", "div", "span", "li", "h2", "h3", "h4"]
MAX_SCHEDULE_TEXT = 160

# Timezone rules
TZ_ABBREVIATIONS = (
    "EDT", "EST", "PDT", "PST", "CDT", "CST", "MDT", "MST", "AKDT", "AKST", "HST",
    "BST", "CET", "CEST", "EET", "EEST", "WET", "JST", "KST", "HKT", "SGT", "IST",
    "AEST", "AEDT", "ACST", "AWST", "NZST", "NZDT", "WIB", "ICT", "PHT",
)
US_TZ_ABBREVIATIONS = ("EDT", "EST", "PDT", "PST", "CDT", "CST", "MDT", "MST")

UTC_PATTERN = re.compile(r"\bUTC\b(?![+-]\d)")
GMT_OFFSET_PATTERN = re.compile(r"\b(?:GMT|UTC)[+-]\d{1,2}(?::?\d{2})?(?!\d)")
IANA_PATTERN = re.compile(
    r"\b(?:Africa|America|Antarctica|Asia|Atlantic|Australia|Europe|Indian|Pacific)"
    r"/[A-Za-z_]+(?:/[A-Za-z_]+)?"
)
ABBREVIATION_PATTERN = re.compile(rf"\b({'|'.join(TZ_ABBREVIATIONS)})\b")
US_ABBREVIATION_PATTERN = re.compile(rf"\b({'|'.join(US_TZ_ABBREVIATIONS)})\b")
TIME_ADJACENT_ABBREVIATION = re.compile(
    r"\b\d{1,2}:\d{2}\s*(?:[AaPp][Mm])?\s+([A-Z]{3,4})\b(?![+-]\d)"
)

DOM_TIMEZONE_RULES = {
    "utc": UTC_PATTERN,
    "iana": IANA_PATTERN,
    "gmt_offset": GMT_OFFSET_PATTERN,
    "abbreviation": ABBREVIATION_PATTERN,
}
# Weakest first; a later rule overrides every earlier one
DOM_TIMEZONE_PRECEDENCE = ("utc", "iana", "gmt_offset", "abbreviation")
JSON_TIMEZONE_PRECEDENCE = (
    "json_raw",
    "gmt_offset",
    "json_valid",
    "time_adjacent_abbreviation",
    "last_us_abbreviation",
)

ScheduleStrategy = Callable[[BeautifulSoup, str], Optional[Schedule]]


def resolve_by_precedence(
    candidates: dict[str, Optional[str]],
    precedence: Sequence[str],
    default: str = DEFAULT_TIMEZONE,
) -> str:
    """Value of the strongest rule that produced one."""
    value = default
    for rule in precedence:
        if candidates.get(rule):
            value = candidates[rule]
    return value


def to_24_hour(hour: int, meridiem: Optional[str]) -> int:
    if meridiem:
        meridiem = meridiem.upper()
        if meridiem == "PM" and hour < 12:
            return hour + 12
        if meridiem == "AM" and hour == 12:
            return 0
    return hour


def parse_iso(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, accepting a trailing "Z"."""
    text = (value or "").strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def shift_iso(value: str, delta: timedelta) -> Optional[str]:
    """Add delta to an ISO timestamp, keeping its "Z" and millisecond style."""
    parsed = parse_iso(value)
    if parsed is None:
        return None
    timespec = "milliseconds" if re.search(r"T\d{2}:\d{2}:\d{2}\.\d+", value) else "seconds"
    shifted = (parsed + delta).isoformat(timespec=timespec)
    if value.strip().endswith("Z"):
        shifted = shifted.replace("+00:00", "Z")
    return shifted


def as_utc(moment: datetime) -> datetime:
    """Treat naive timestamps as UTC so they compare with aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def format_utc(moment: datetime) -> str:
    return as_utc(moment).astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def match_date(text: str) -> Optional[datetime]:
    """First calendar date in the text, as a naive midnight datetime."""
    for pattern in DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        month = MONTHS[match.group("month")[:3].lower()]
        try:
            return datetime(int(match.group("year")), month, int(match.group("day")))
        except ValueError:
            continue
    return None


def match_times(text: str, limit: int = 2) -> list[tuple[int, int]]:
    """Up to `limit` valid clock times as 24-hour (hour, minute) pairs."""
    times = []
    for hour_str, minute_str, meridiem in TIME_PATTERN.findall(text):
        hour, minute = int(hour_str), int(minute_str)
        if minute > 59 or hour > 23 or (meridiem and not 1 <= hour <= 12):
            continue
        times.append((to_24_hour(hour, meridiem or None), minute))
        if len(times) == limit:
            break
    return times


def scan_dom_timezone(soup: BeautifulSoup) -> str:
    """Timezone label shown next to the schedule, if any."""
    candidates: dict[str, Optional[str]] = {}
    for string in soup.stripped_strings:
        text = normalize_text(string)
        if not (
            "timezone" in text.lower()
            or "UTC" in text
            or "GMT" in text
            or ABBREVIATION_PATTERN.search(text)
        ):
            continue
        for rule, pattern in DOM_TIMEZONE_RULES.items():
            matches = pattern.findall(text)
            if matches:
                candidates[rule] = matches[-1]
    return resolve_by_precedence(candidates, DOM_TIMEZONE_PRECEDENCE)


def schedule_from_dom(soup: BeautifulSoup, html: str) -> Optional[Schedule]:
    """Read the date/time line rendered on the page."""
    for element in soup.find_all(SCHEDULE_TAGS):
        text = normalize_text(element.get_text(" "))
        if not text or len(text) > MAX_SCHEDULE_TEXT:
            continue
        day = match_date(text)
        if day is None:
            continue

        times = match_times(text)
        if not times:
            continue
        start = day.replace(hour=times[0][0], minute=times[0][1])

        if len(times) > 1:
            end = day.replace(hour=times[1][0], minute=times[1][1])
            if end < start:
                end += timedelta(days=1)  # ends after midnight
        else:
            end = start + DEFAULT_DURATION

        return Schedule(
            start_at=start.isoformat(timespec="seconds"),
            end_at=end.isoformat(timespec="seconds"),
            timezone=scan_dom_timezone(soup),
        )
    return None


def json_timezone_candidates(html: str) -> dict[str, Optional[str]]:
    raw = extract_json_string(html, "timezone")
    gmt = GMT_OFFSET_PATTERN.search(html)
    adjacent = TIME_ADJACENT_ABBREVIATION.search(html)
    us = US_ABBREVIATION_PATTERN.findall(html)
    return {
        "json_raw": raw,
        "gmt_offset": gmt.group(0) if gmt else None,
        "json_valid": raw if raw and (raw == "UTC" or "/" in raw) else None,
        "time_adjacent_abbreviation": adjacent.group(1) if adjacent else None,
        "last_us_abbreviation": us[-1] if us else None,
    }


def schedule_from_embedded_json(soup: BeautifulSoup, html: str) -> Optional[Schedule]:
    """Use the start_at/end_at timestamps of the page payload."""
    start_at = extract_json_string(html, "start_at")
    start = parse_iso(start_at) if start_at else None
    if start is None:
        return None

    end_at = extract_json_string(html, "end_at")
    end = parse_iso(end_at) if end_at else None
    if end is None or as_utc(end) < as_utc(start):
        # A missing or inverted end falls back to the default duration
        end_at = shift_iso(start_at, DEFAULT_DURATION)

    timezone_name = resolve_by_precedence(json_timezone_candidates(html), JSON_TIMEZONE_PRECEDENCE)
    return Schedule(start_at=start_at, end_at=end_at, timezone=timezone_name)


SCHEDULE_STRATEGIES: tuple[ScheduleStrategy, ...] = (
    schedule_from_dom,
    schedule_from_embedded_json,
)


def default_schedule(now: Optional[datetime] = None) -> Schedule:
    now = now or datetime.now(timezone.utc)
    return Schedule(
        start_at=format_utc(now),
        end_at=format_utc(now + DEFAULT_DURATION),
        timezone=DEFAULT_TIMEZONE,
    )


def extract_schedule(
    soup: BeautifulSoup,
    html: str,
    now: Optional[datetime] = None,
) -> Schedule:
    """Start, end and timezone of the event; now/now+3h/UTC when nothing matches."""
    for strategy in SCHEDULE_STRATEGIES:
        schedule = strategy(soup, html)
        if schedule:
            return schedule
    return default_schedule(now)

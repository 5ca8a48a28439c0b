"""
Date and due-phrase recognition for free-form academic text.

Dates are resolved by an ordered rule table; the first rule that yields a
valid calendar date wins:

    1. Numeric dates      2026-10-25, 10/25, 10/25/2026, 10-25-2026
    2. Written dates      Oct 25, October 25th, 2026, 25 October
    3. Relative phrases   today, tomorrow, in two weeks, next Friday, Fridays

Times ("at 11:59pm", "3 pm", "14:30", "noon") are applied on top of the date;
without one the due time is end of day (23:59). All values are naive local
datetimes.
"""
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, List, Optional, Union

from dateutil.relativedelta import relativedelta, MO, TU, WE, TH, FR, SA, SU

from core.config import DEFAULT_DUE_DAYS, DEFAULT_DUE_HOUR, DEFAULT_DUE_MINUTE

logger = logging.getLogger(__name__)

MONTH_NAMES = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sept": 9, "sep": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

WEEKDAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
_RELATIVE_WEEKDAYS = [MO, TU, WE, TH, FR, SA, SU]

NUMBER_WORDS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11,
    "twelve": 12,
}

MONTH_PATTERN = (
    r"(january|jan|february|feb|march|mar|april|apr|may|june|jun|july|jul|august|aug|"
    r"september|sept|sep|october|oct|november|nov|december|dec)\.?"
)
WEEKDAY_PATTERN = r"(monday|tuesday|wednesday|thursday|friday|saturday|sunday)"

TIME_12H = re.compile(r"\b(?:at\s+)?(\d{1,2})(?::([0-5]\d))?\s*([ap])\.?m\.?(?![a-z])", re.IGNORECASE)
TIME_24H = re.compile(r"\b(?:at\s+)?([01]?\d|2[0-3]):([0-5]\d)\b", re.IGNORECASE)
TIME_WORD = re.compile(r"\b(?:at\s+)?(noon|midnight)\b", re.IGNORECASE)
TIME_PATTERNS = [TIME_12H, TIME_24H, TIME_WORD]

UTC_MARKER = re.compile(r"\b(?:UTC|GMT)\b", re.IGNORECASE)

Resolved = Union[date, datetime]


@dataclass(frozen=True)
class RecognizedDate:
    """A date found in text plus the exact text that produced it"""
    value: datetime
    matched_text: str
    rule: str


@dataclass(frozen=True)
class DateRule:
    """One entry of the recognition table.

    ``resolve`` returns a date (time applied later), a datetime (time already
    explicit), or None when the match is not a usable date.
    """
    name: str
    pattern: "re.Pattern"
    resolve: Callable[["re.Match", datetime], Optional[Resolved]]


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time(DEFAULT_DUE_HOUR, DEFAULT_DUE_MINUTE))


def default_due_date(now: Optional[datetime] = None) -> datetime:
    """Universal fallback: DEFAULT_DUE_DAYS from now, at end of day."""
    now = now or datetime.now()
    return end_of_day(now.date() + timedelta(days=DEFAULT_DUE_DAYS))


def _calendar_date(month: int, day: int, year_text: Optional[str], now: datetime) -> date:
    """Build a date; a missing year means this year, rolled forward if already past."""
    if year_text:
        year = int(year_text)
        if year < 100:
            year += 2000
        return date(year, month, day)

    # Eight years always reach the next Feb 29
    for year in range(now.year, now.year + 9):
        try:
            candidate = date(year, month, day)
        except ValueError:
            continue
        if candidate >= now.date():
            return candidate
    raise ValueError(f"No calendar date for month {month} day {day}")


def _resolve_iso(match: "re.Match", now: datetime) -> Resolved:
    year, month, day = int(match.group(1)), int(match.group(2)), int(match.group(3))
    if match.group(4) is not None:
        return datetime(year, month, day, int(match.group(4)), int(match.group(5)))
    return date(year, month, day)


def _resolve_numeric(match: "re.Match", now: datetime) -> Resolved:
    return _calendar_date(int(match.group(1)), int(match.group(2)), match.group(3), now)


def _resolve_month_day(match: "re.Match", now: datetime) -> Resolved:
    month = MONTH_NAMES[match.group(1).lower()]
    return _calendar_date(month, int(match.group(2)), match.group(3), now)


def _resolve_day_month(match: "re.Match", now: datetime) -> Resolved:
    month = MONTH_NAMES[match.group(2).lower()]
    return _calendar_date(month, int(match.group(1)), match.group(3), now)


def _resolve_relative_day(match: "re.Match", now: datetime) -> Resolved:
    word = match.group(1).lower()
    if word == "tomorrow":
        return now.date() + timedelta(days=1)
    return now.date()


def _resolve_in_period(match: "re.Match", now: datetime) -> Optional[Resolved]:
    amount_text = match.group(1).lower()
    amount = int(amount_text) if amount_text.isdigit() else NUMBER_WORDS.get(amount_text)
    if amount is None:
        return None
    unit = match.group(2).lower()
    if unit.startswith("week"):
        return now.date() + timedelta(weeks=amount)
    return now.date() + timedelta(days=amount)


def _resolve_next_week(match: "re.Match", now: datetime) -> Resolved:
    return now.date() + timedelta(days=7)


def _resolve_next_weekday(match: "re.Match", now: datetime) -> Resolved:
    # "next Friday" is the first Friday strictly after today
    target = WEEKDAY_NAMES.index(match.group(1).lower())
    return now.date() + relativedelta(days=1, weekday=_RELATIVE_WEEKDAYS[target](+1))


def _resolve_weekday(match: "re.Match", now: datetime) -> Resolved:
    # "Friday" / "this Friday" / "Fridays" is the upcoming Friday, today included
    target = WEEKDAY_NAMES.index(match.group(1).lower())
    return now.date() + relativedelta(weekday=_RELATIVE_WEEKDAYS[target](+1))


DATE_RULES: List[DateRule] = [
    # Numeric
    DateRule(
        "iso",
        re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})(?:[T\s]+(\d{1,2}):(\d{2}))?\b"),
        _resolve_iso,
    ),
    DateRule(
        "numeric_slash",
        re.compile(r"(?<![\d/])(\d{1,2})/(\d{1,2})(?:/(\d{4}|\d{2}))?(?![\d/])"),
        _resolve_numeric,
    ),
    DateRule(
        "numeric_dash",
        re.compile(r"(?<![\d-])(\d{1,2})-(\d{1,2})-(\d{4}|\d{2})(?![\d-])"),
        _resolve_numeric,
    ),
    # Written
    DateRule(
        "month_day",
        re.compile(
            r"\b" + MONTH_PATTERN + r"\s+(\d{1,2})(?:st|nd|rd|th)?(?![\d:])(?:,?\s+(\d{4})\b)?",
            re.IGNORECASE,
        ),
        _resolve_month_day,
    ),
    DateRule(
        "day_month",
        re.compile(
            r"\b(\d{1,2})(?:st|nd|rd|th)?\s+(?:of\s+)?" + MONTH_PATTERN + r"\b(?:,?\s+(\d{4})\b)?",
            re.IGNORECASE,
        ),
        _resolve_day_month,
    ),
    # Relative
    DateRule(
        "relative_day",
        re.compile(r"\b(today|tonight|tomorrow)\b", re.IGNORECASE),
        _resolve_relative_day,
    ),
    DateRule(
        "in_period",
        re.compile(r"\bin\s+(\d+|[a-z]+)\s+(days?|weeks?)\b", re.IGNORECASE),
        _resolve_in_period,
    ),
    DateRule(
        "next_week",
        re.compile(r"\bnext\s+week\b", re.IGNORECASE),
        _resolve_next_week,
    ),
    DateRule(
        "next_weekday",
        re.compile(r"\bnext\s+" + WEEKDAY_PATTERN + r"\b", re.IGNORECASE),
        _resolve_next_weekday,
    ),
    DateRule(
        "weekday",
        re.compile(r"\b(?:(?:this|on|every)\s+)?" + WEEKDAY_PATTERN + r"s?\b", re.IGNORECASE),
        _resolve_weekday,
    ),
]


def extract_time(text: str) -> Optional[time]:
    """Find an explicit time of day, if any."""
    for match in TIME_12H.finditer(text):
        hour = int(match.group(1))
        if not 1 <= hour <= 12:
            continue
        minute = int(match.group(2) or 0)
        if match.group(3).lower() == "p" and hour != 12:
            hour += 12
        elif match.group(3).lower() == "a" and hour == 12:
            hour = 0
        return time(hour, minute)

    match = TIME_24H.search(text)
    if match:
        return time(int(match.group(1)), int(match.group(2)))

    match = TIME_WORD.search(text)
    if match:
        if match.group(1).lower() == "noon":
            return time(12, 0)
        # Midnight deadlines mean the end of the named day
        return time(DEFAULT_DUE_HOUR, DEFAULT_DUE_MINUTE)
    return None


class DateRecognizer:
    """Finds the best-guess due date in a line of text."""

    def __init__(self, rules: Optional[List[DateRule]] = None):
        self.rules = rules if rules is not None else DATE_RULES

    def recognize(self, text: str, now: Optional[datetime] = None) -> Optional[RecognizedDate]:
        """
        Recognize a date in text.

        Args:
            text: Line or sentence to scan
            now: Reference time for relative phrases and year rollover

        Returns:
            RecognizedDate, or None when nothing date-like is found
        """
        if not text or not text.strip():
            return None
        now = now or datetime.now()

        try:
            for rule in self.rules:
                for match in rule.pattern.finditer(text):
                    try:
                        resolved = rule.resolve(match, now)
                    except (ValueError, OverflowError):
                        # e.g. 13/45 or Feb 30
                        continue
                    if resolved is None:
                        continue
                    value = self._apply_time(resolved, text)
                    return RecognizedDate(
                        value=value,
                        matched_text=match.group(0).strip(),
                        rule=rule.name,
                    )
        except Exception as e:
            logger.debug("Date recognition failed for %r: %s", text[:80], e)
        return None

    def _apply_time(self, resolved: Resolved, text: str) -> datetime:
        if isinstance(resolved, datetime):
            value = resolved
        else:
            value = datetime.combine(resolved, extract_time(text) or time(DEFAULT_DUE_HOUR, DEFAULT_DUE_MINUTE))

        if UTC_MARKER.search(text):
            value = value.replace(tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        return value


# Global recognizer instance
date_recognizer = DateRecognizer()

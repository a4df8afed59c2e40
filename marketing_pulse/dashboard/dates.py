"""
Date ranges, presets and relative "last updated" labels.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

DATE_FORMAT = "%Y-%m-%d"

PRESETS = {
    "last_7_days": "Last 7 days",
    "last_30_days": "Last 30 days",
    "this_month": "This month",
    "last_month": "Last month",
    "custom": "Custom range",
}


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar date range."""
    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"End date {self.end} is before start date {self.start}")

    @property
    def start_str(self) -> str:
        return self.start.strftime(DATE_FORMAT)

    @property
    def end_str(self) -> str:
        return self.end.strftime(DATE_FORMAT)

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def to_body(self) -> dict:
        """Request body for the backend source endpoints."""
        return {"startDate": self.start_str, "endDate": self.end_str}

    def previous_period(self) -> "DateRange":
        """Range of equal length ending the day before this one starts."""
        end = self.start - timedelta(days=1)
        return DateRange(end - timedelta(days=self.days - 1), end)

    @classmethod
    def parse(cls, start: str, end: str) -> "DateRange":
        return cls(
            datetime.strptime(start, DATE_FORMAT).date(),
            datetime.strptime(end, DATE_FORMAT).date(),
        )


def preset_range(preset: str, today: Optional[date] = None) -> DateRange:
    """
    Resolve a named preset relative to `today`.

    Args:
        preset: one of last_7_days, last_30_days, this_month, last_month

    Raises:
        ValueError: for an unknown preset (custom ranges are built directly)
    """
    today = today or date.today()

    if preset == "last_7_days":
        return DateRange(today - timedelta(days=7), today)
    if preset == "last_30_days":
        return DateRange(today - timedelta(days=30), today)
    if preset == "this_month":
        return DateRange(today.replace(day=1), today)
    if preset == "last_month":
        last_day = today.replace(day=1) - timedelta(days=1)
        return DateRange(last_day.replace(day=1), last_day)

    raise ValueError(f"Unknown date preset: {preset}")


def format_relative(now: datetime, last_refresh: Optional[datetime]) -> Optional[str]:
    """
    Describe how long ago `last_refresh` was, e.g. "5 minutes ago".

    Computed at render time from the two instants.
    """
    if last_refresh is None:
        return None

    seconds = max((now - last_refresh).total_seconds(), 0)
    minutes = round(seconds / 60)

    if minutes < 1:
        return "less than a minute ago"
    if minutes == 1:
        return "1 minute ago"
    if minutes < 45:
        return f"{minutes} minutes ago"
    if minutes < 90:
        return "about 1 hour ago"

    hours = round(minutes / 60)
    if hours < 24:
        return f"about {hours} hours ago"
    if hours < 42:
        return "1 day ago"

    return f"{round(hours / 24)} days ago"


COMPARE_MODES = {
    "off": "No comparison",
    "mom": "MoM",
    "yoy": "YoY",
}


def _years_back(day: date, years: int = 1) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # 29 February
        return day.replace(year=day.year - years, day=28)


def comparison_range(date_range: DateRange, mode: str) -> Optional[DateRange]:
    """
    Range to compare `date_range` against.

    "mom" is the equally long period ending the day before the range starts,
    "yoy" the same dates a year earlier, "off" gives None.
    """
    if mode == "off":
        return None
    if mode == "mom":
        return date_range.previous_period()
    if mode == "yoy":
        return DateRange(_years_back(date_range.start), _years_back(date_range.end))

    raise ValueError(f"Unknown compare mode: {mode}")

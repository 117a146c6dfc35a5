"""Reference-timezone clock helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Europe/Vienna"


def utc_now() -> datetime:
    return datetime.now(UTC)


def iso_utc(moment: datetime) -> str:
    """ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def semester_label(moment: datetime) -> str:
    """University of Vienna semester for a (local) date.

    Summer semester runs March–June, winter semester October–January.
    """
    month = moment.month
    year = moment.year
    if 3 <= month <= 6:
        return f"SS {year}"
    if 10 <= month <= 12:
        return f"WS {year}/{str(year + 1)[-2:]}"
    if month == 1:
        return f"WS {year - 1}/{str(year)[-2:]}"
    return f"Semester break ({year})"


@dataclass(frozen=True)
class LocalTime:
    """A moment rendered in the reference timezone."""

    timezone: str
    moment: datetime

    @classmethod
    def at(cls, moment: datetime, timezone: str = DEFAULT_TIMEZONE) -> LocalTime:
        return cls(timezone=timezone, moment=moment.astimezone(ZoneInfo(timezone)))

    @property
    def date(self) -> str:
        return self.moment.strftime("%Y-%m-%d")

    @property
    def time(self) -> str:
        return self.moment.strftime("%H:%M")

    @property
    def weekday(self) -> str:
        # English names regardless of process locale
        return (
            "Monday",
            "Tuesday",
            "Wednesday",
            "Thursday",
            "Friday",
            "Saturday",
            "Sunday",
        )[self.moment.weekday()]

    @property
    def semester(self) -> str:
        return semester_label(self.moment)

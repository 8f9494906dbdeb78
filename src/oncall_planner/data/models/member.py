from __future__ import annotations

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field

from .common import ApiBaseModel


WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def format_utc_offset(timezone: str, moment: datetime | None = None) -> str | None:
    """Render the offset of ``timezone`` at ``moment`` as ``UTC+HH:MM``."""
    try:
        zone = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return None
    instant = moment or datetime.now(UTC)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    offset = instant.astimezone(zone).utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    hours, minutes = divmod(abs(minutes), 60)
    return f"UTC{sign}{hours:02d}:{minutes:02d}"


class WorkingInterval(ApiBaseModel):
    start: str
    end: str

    @property
    def label(self) -> str:
        return f"{self.start[:5]}-{self.end[:5]}"


class MemberProfile(ApiBaseModel):
    """Display metadata for a schedulable user; never inspected by the core."""

    pk: str
    username: str = Field(validation_alias=AliasChoices("username", "name"))
    timezone: str | None = None
    working_hours: dict[str, list[WorkingInterval]] = Field(default_factory=dict)

    @property
    def label(self) -> str:
        if self.timezone:
            return f"{self.username} ({self.timezone})"
        return self.username

    def working_hours_summary(self) -> list[str]:
        """One line per weekday with working intervals, Monday first."""
        lines: list[str] = []
        for day in WEEKDAYS:
            intervals = self.working_hours.get(day)
            if intervals:
                spans = ", ".join(interval.label for interval in intervals)
                lines.append(f"{day[:3].title()} {spans}")
        return lines

    def tooltip(self, moment: datetime | None = None) -> str:
        lines = [self.username]
        if self.timezone:
            offset = format_utc_offset(self.timezone, moment)
            lines.append(f"{self.timezone} ({offset})" if offset else self.timezone)
        lines.extend(self.working_hours_summary())
        return "\n".join(lines)


__all__ = ["MemberProfile", "WorkingInterval", "format_utc_offset"]

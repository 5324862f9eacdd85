# app/core/business.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.core.config import Settings

UTC = timezone.utc

# 24:00 (optionally with zero seconds) closes the day
END_OF_DAY = re.compile(r"(\d{4}-\d{2}-\d{2})T24:00(?::00(?:\.0+)?)?(.*)", re.ASCII)


@dataclass(frozen=True)
class IntakePolicy:
    """Scheduling knobs for one deployment; built once by the app factory."""
    enforce_grid: bool = True
    grid_minutes: int = 15
    duration_min: int = 60  # placeholder until durations are looked up per service

    @classmethod
    def from_settings(cls, settings: Settings) -> "IntakePolicy":
        return cls(
            enforce_grid=settings.ENFORCE_SLOT_GRID,
            grid_minutes=settings.SLOT_GRID_MINUTES,
            duration_min=settings.DEFAULT_SERVICE_DURATION_MIN,
        )


def parse_iso_utc(s: str) -> datetime:
    """
    Parse an ISO 8601 timestamp into an aware UTC datetime.
    A trailing "Z" is accepted on every Python version; a missing offset means UTC.
    "T24:00" is the end of that day, i.e. midnight of the next one.
    Raises ValueError (or OverflowError at the edges of the calendar).
    """
    text = s.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    end_of_day = END_OF_DAY.fullmatch(text)
    if end_of_day:
        day, rest = end_of_day.groups()
        dt = datetime.fromisoformat(f"{day}T00:00{rest}") + timedelta(days=1)
    else:
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def format_iso_minute_z(dt: datetime) -> str:
    """Render as "YYYY-MM-DDTHH:MM:00Z", flooring anything below the minute."""
    dt = dt.astimezone(UTC)
    return f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}T{dt.hour:02d}:{dt.minute:02d}:00Z"


def enforce_slot_grid(iso_minute_z: str, grid_minutes: int = 15) -> Optional[str]:
    """Return None if the start minute sits on the grid, else the error message."""
    minute = parse_iso_utc(iso_minute_z).minute
    if minute % grid_minutes == 0:
        return None
    return f"startAt must align to {grid_minutes}-minute increments"


def enforce_future(iso_minute_z: str, now: datetime) -> Optional[str]:
    """Starts equal to ``now`` count as past."""
    if parse_iso_utc(iso_minute_z) > now.astimezone(UTC):
        return None
    return "startAt must be in the future"


def compute_end_at(start_iso: str, duration_min: int) -> str:
    end = parse_iso_utc(start_iso) + timedelta(minutes=duration_min)
    return format_iso_minute_z(end)

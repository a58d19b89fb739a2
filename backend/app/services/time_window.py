from __future__ import annotations

import re
from dataclasses import dataclass

from app.core.exceptions import SchedulingValidationError

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise SchedulingValidationError(
            "Time must be in HH:MM 24-hour format",
            details={"value": value},
        )
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def normalize_time(value: str | None) -> str | None:
    """Pad single-digit hours ("9:00" -> "09:00"); anything else is returned stripped but unchanged."""
    if not isinstance(value, str):
        return value
    value = value.strip()
    if len(value) == 4 and value[1] == ":" and value[0].isdigit():
        return f"0{value}"
    return value


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def overlaps(a_start: str | int, a_end: str | int, b_start: str | int, b_end: str | int) -> bool:
    """Half-open overlap test: windows that only touch do not overlap.

    Accepts zero-padded "HH:MM" strings or minute offsets, but all four
    arguments must use the same representation.
    """
    return a_start < b_end and a_end > b_start


@dataclass(frozen=True, order=True)
class TimeWindow:
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise SchedulingValidationError(
                "End time must be after start time",
                details={"start_time": minutes_to_time(self.start), "end_time": minutes_to_time(self.end)},
            )

    @classmethod
    def parse(cls, start_time: str, end_time: str) -> TimeWindow:
        return cls(parse_time_to_minutes(start_time), parse_time_to_minutes(end_time))

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end)

    @property
    def label(self) -> str:
        return f"{self.start_time}-{self.end_time}"

    def overlaps(self, other: TimeWindow) -> bool:
        return overlaps(self.start, self.end, other.start, other.end)

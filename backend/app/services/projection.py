from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date, timedelta

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import DataUnavailableError, SchedulingValidationError
from app.schemas.schedule import ScheduleProjectionInput, ScheduleProjectionResult
from app.services.scheduling_data import get_holidays_for_branch

logger = logging.getLogger(__name__)


def sunday_based_weekday(day: date) -> int:
    """0 = Sunday .. 6 = Saturday, the convention used by ``days_of_week``."""
    return (day.weekday() + 1) % 7


def generate_session_dates(
    start_date: date,
    days_of_week: Iterable[int],
    total_sessions: int,
    is_holiday: Callable[[date], bool],
    max_days: int,
) -> tuple[list[date], list[date]]:
    """Walk forward from ``start_date`` (inclusive) collecting session dates.

    Returns ``(session_dates, skipped_holidays)``. ``skipped_holidays`` lists the
    scheduled weekdays that were passed over because they are holidays.
    """
    allowed = set(days_of_week)
    if not allowed:
        raise SchedulingValidationError("days_of_week must contain at least one day")
    invalid = sorted(day for day in allowed if day < 0 or day > 6)
    if invalid:
        raise SchedulingValidationError("days_of_week values must be between 0 and 6", details={"invalid": invalid})
    if total_sessions < 1:
        raise SchedulingValidationError("total_sessions must be at least 1", details={"total_sessions": total_sessions})

    sessions: list[date] = []
    skipped: list[date] = []
    current = start_date
    for _ in range(max_days):
        if sunday_based_weekday(current) in allowed:
            if is_holiday(current):
                skipped.append(current)
            else:
                sessions.append(current)
                if len(sessions) == total_sessions:
                    return sessions, skipped
        current += timedelta(days=1)

    raise SchedulingValidationError(
        f"Unable to place {total_sessions} sessions within {max_days} days of {start_date.isoformat()}",
        details={"placed": len(sessions), "skipped_holidays": len(skipped)},
    )


class _HolidayCalendar:
    """Holiday membership for one branch, fetched lazily one window at a time.

    If a fetch fails the calendar stops consulting the data layer and reports
    every later date as a working day; ``degraded_from`` records where that began.
    """

    def __init__(self, db: Session, branch_id: str, window_days: int) -> None:
        self.db = db
        self.branch_id = branch_id
        self.window_days = max(1, window_days)
        self.dates: set[date] = set()
        self.fetched_until: date | None = None
        self.degraded_from: date | None = None

    @property
    def degraded(self) -> bool:
        return self.degraded_from is not None

    def is_holiday(self, day: date) -> bool:
        if self.degraded:
            return False
        if self.fetched_until is None or day > self.fetched_until:
            self._fetch_window(day)
            if self.degraded:
                return False
        return day in self.dates

    def _fetch_window(self, start: date) -> None:
        end = start + timedelta(days=self.window_days - 1)
        try:
            holidays = get_holidays_for_branch(self.db, self.branch_id, start, end)
        except DataUnavailableError:
            logger.warning(
                "Holiday lookup failed for branch %s from %s; projecting without holidays",
                self.branch_id,
                start,
                exc_info=True,
            )
            self.degraded_from = start
            return
        self.dates.update(holiday.date for holiday in holidays)
        self.fetched_until = end


def project_end_date(db: Session, projection: ScheduleProjectionInput) -> ScheduleProjectionResult:
    settings = get_settings()
    calendar = _HolidayCalendar(db, projection.branch_id, settings.projection_holiday_window_days)
    session_dates, skipped = generate_session_dates(
        projection.start_date,
        projection.days_of_week,
        projection.total_sessions,
        calendar.is_holiday,
        settings.projection_max_days,
    )

    warnings: list[str] = []
    if calendar.degraded:
        warnings.append(
            f"Holiday data was unavailable from {calendar.degraded_from.isoformat()}; "
            "dates from then on ignore holidays and may need manual correction"
        )

    return ScheduleProjectionResult(
        end_date=session_dates[-1],
        session_dates=session_dates,
        skipped_holidays=skipped,
        holiday_aware=not calendar.degraded,
        degraded=calendar.degraded,
        warnings=warnings,
    )

from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session

from app.models.holiday import Holiday
from app.services.scheduling_data import get_holidays_for_branch


class HolidayIndex:
    """Branch-aware holiday lookups.

    Results are memoized per (branch, range) for the lifetime of the index,
    which is one request. Query failures surface as ``DataUnavailableError``.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self._cache: dict[tuple[str, date, date], list[Holiday]] = {}

    def holidays_for_branch(self, branch_id: str, start_date: date, end_date: date) -> list[Holiday]:
        key = (branch_id, start_date, end_date)
        if key not in self._cache:
            self._cache[key] = get_holidays_for_branch(self.db, branch_id, start_date, end_date)
        return self._cache[key]

    def holiday_dates(self, branch_id: str, start_date: date, end_date: date) -> set[date]:
        return {holiday.date for holiday in self.holidays_for_branch(branch_id, start_date, end_date)}

    def holiday_on(self, branch_id: str, day: date) -> Holiday | None:
        holidays = self.holidays_for_branch(branch_id, day, day)
        return holidays[0] if holidays else None

    def is_holiday(self, branch_id: str, day: date) -> bool:
        return self.holiday_on(branch_id, day) is not None

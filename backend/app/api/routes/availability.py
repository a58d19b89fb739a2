from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.config import get_settings
from app.schemas.availability import (
    AvailabilityRequest,
    AvailabilityResult,
    DayConflicts,
    DayReport,
    SlotAvailability,
)
from app.services.availability import check_availability, get_day_conflicts, is_time_slot_available
from app.services.day_report import build_day_report

router = APIRouter()

settings = get_settings()


@router.post("/check", response_model=AvailabilityResult)
def check_slot(payload: AvailabilityRequest, db: Session = Depends(get_db)) -> AvailabilityResult:
    return check_availability(db, payload)


@router.post("/is-free", response_model=SlotAvailability)
def slot_is_free(payload: AvailabilityRequest, db: Session = Depends(get_db)) -> SlotAvailability:
    return SlotAvailability(available=is_time_slot_available(db, payload))


@router.get("/day", response_model=DayConflicts)
def day_conflicts(
    branch_id: str = Query(min_length=1, max_length=36),
    day: date = Query(alias="date"),
    db: Session = Depends(get_db),
) -> DayConflicts:
    return get_day_conflicts(db, branch_id, day)


@router.get("/report", response_model=DayReport)
def day_report(
    branch_id: str = Query(min_length=1, max_length=36),
    day: date = Query(alias="date"),
    start: str = Query(default=settings.report_default_start),
    end: str = Query(default=settings.report_default_end),
    slot_minutes: int = Query(default=settings.report_slot_minutes, ge=5, le=240),
    alignment: Literal["00", "30"] | None = Query(default=None),
    db: Session = Depends(get_db),
) -> DayReport:
    return build_day_report(
        db,
        branch_id=branch_id,
        day=day,
        start_time=start,
        end_time=end,
        slot_minutes=slot_minutes,
        alignment=alignment,
    )

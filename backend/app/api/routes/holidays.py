from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.holiday import HolidayCheck, HolidayOut
from app.services.holidays import HolidayIndex

router = APIRouter()


@router.get("/", response_model=list[HolidayOut])
def list_branch_holidays(
    branch_id: str = Query(min_length=1, max_length=36),
    start_date: date = Query(),
    end_date: date = Query(),
    db: Session = Depends(get_db),
) -> list[HolidayOut]:
    if end_date < start_date:
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")
    return HolidayIndex(db).holidays_for_branch(branch_id, start_date, end_date)


@router.get("/check", response_model=HolidayCheck)
def check_holiday(
    branch_id: str = Query(min_length=1, max_length=36),
    day: date = Query(alias="date"),
    db: Session = Depends(get_db),
) -> HolidayCheck:
    holiday = HolidayIndex(db).holiday_on(branch_id, day)
    return HolidayCheck(
        date=day,
        branch_id=branch_id,
        is_holiday=holiday is not None,
        holiday=HolidayOut.model_validate(holiday) if holiday else None,
    )

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.schedule import ScheduleProjectionInput, ScheduleProjectionResult
from app.services.projection import project_end_date

router = APIRouter()


@router.post("/project-end-date", response_model=ScheduleProjectionResult)
def project_schedule_end_date(
    payload: ScheduleProjectionInput,
    db: Session = Depends(get_db),
) -> ScheduleProjectionResult:
    return project_end_date(db, payload)

import datetime

from pydantic import BaseModel, Field

from app.models.holiday import HolidayType


class HolidayOut(BaseModel):
    id: str
    name: str
    date: datetime.date
    type: HolidayType
    branches: list[str] = Field(default_factory=list)
    description: str | None = None

    model_config = {"from_attributes": True}


class HolidayCheck(BaseModel):
    date: datetime.date
    branch_id: str
    is_holiday: bool
    holiday: HolidayOut | None = None

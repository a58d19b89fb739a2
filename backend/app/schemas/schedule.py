import datetime

from pydantic import BaseModel, Field, field_validator


class ScheduleProjectionInput(BaseModel):
    start_date: datetime.date
    # 0 = Sunday .. 6 = Saturday
    days_of_week: list[int] = Field(min_length=1, max_length=7)
    total_sessions: int = Field(ge=1, le=1000)
    branch_id: str = Field(min_length=1, max_length=36)

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, value: list[int]) -> list[int]:
        invalid = [day for day in value if day < 0 or day > 6]
        if invalid:
            raise ValueError(f"Invalid day(s) of week: {', '.join(str(day) for day in invalid)}")
        return sorted(set(value))


class ScheduleProjectionResult(BaseModel):
    end_date: datetime.date
    session_dates: list[datetime.date] = Field(default_factory=list)
    skipped_holidays: list[datetime.date] = Field(default_factory=list)
    holiday_aware: bool = True
    degraded: bool = False
    warnings: list[str] = Field(default_factory=list)

import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from app.services.time_window import TIME_PATTERN

CommitmentType = Literal["class", "makeup", "trial"]


def _validate_time(value: str) -> str:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value


class AvailabilityRequest(BaseModel):
    date: datetime.date
    start_time: str
    end_time: str
    branch_id: str = Field(min_length=1, max_length=36)
    room_id: str | None = Field(default=None, max_length=36)
    teacher_id: str | None = Field(default=None, max_length=36)
    exclude_id: str | None = Field(default=None, max_length=36)
    exclude_type: CommitmentType | None = None
    allow_conflicts: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return _validate_time(value)

    @model_validator(mode="after")
    def validate_order(self) -> "AvailabilityRequest":
        # Zero-padded HH:MM compares correctly as text.
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class IssueDetails(BaseModel):
    conflict_type: CommitmentType | None = None
    conflict_name: str | None = None
    conflict_time: str | None = None
    student_names: list[str] = Field(default_factory=list)
    count: int | None = None
    holiday_name: str | None = None


class AvailabilityIssue(BaseModel):
    type: Literal["holiday", "room_conflict", "teacher_conflict"]
    message: str
    details: IssueDetails = Field(default_factory=IssueDetails)


class AvailabilityWarning(BaseModel):
    type: Literal["room_conflict", "teacher_conflict"]
    message: str
    details: IssueDetails = Field(default_factory=IssueDetails)


class AvailabilityResult(BaseModel):
    available: bool
    reasons: list[AvailabilityIssue] = Field(default_factory=list)
    warnings: list[AvailabilityWarning] = Field(default_factory=list)


class SlotAvailability(BaseModel):
    available: bool


class BusySlot(BaseModel):
    start_time: str
    end_time: str
    type: CommitmentType
    name: str
    room_id: str | None = None
    room_name: str | None = None
    teacher_id: str | None = None
    teacher_name: str | None = None
    subject_id: str | None = None
    subject_color: str | None = None
    student_names: list[str] = Field(default_factory=list)
    student_count: int | None = None
    class_id: str | None = None
    session_number: int | None = None
    total_sessions: int | None = None
    is_completed: bool | None = None


class DayConflicts(BaseModel):
    date: datetime.date
    branch_id: str
    is_holiday: bool
    holiday_name: str | None = None
    busy_slots: list[BusySlot] = Field(default_factory=list)


class SlotConflict(BaseModel):
    type: CommitmentType
    name: str
    subject_id: str | None = None
    subject_color: str | None = None
    class_id: str | None = None
    session_number: int | None = None
    total_sessions: int | None = None
    is_completed: bool | None = None
    student_count: int | None = None


class TimeSlot(BaseModel):
    start_time: str
    end_time: str
    available: bool = True
    conflicts: list[SlotConflict] = Field(default_factory=list)


class RoomSummary(BaseModel):
    id: str
    name: str
    capacity: int

    model_config = {"from_attributes": True}


class TeacherSummary(BaseModel):
    id: str
    name: str
    nickname: str | None = None

    model_config = {"from_attributes": True}


class RoomAvailabilityData(BaseModel):
    room: RoomSummary
    slots: list[TimeSlot]


class TeacherAvailabilityData(BaseModel):
    teacher: TeacherSummary
    specialties: list[str] = Field(default_factory=list)
    slots: list[TimeSlot]


class DayReport(BaseModel):
    date: datetime.date
    branch_id: str
    is_holiday: bool
    holiday_name: str | None = None
    start_time: str
    end_time: str
    slot_minutes: int
    rooms: list[RoomAvailabilityData] = Field(default_factory=list)
    teachers: list[TeacherAvailabilityData] = Field(default_factory=list)

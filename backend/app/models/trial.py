import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class TrialStatus(str, Enum):
    scheduled = "scheduled"
    attended = "attended"
    absent = "absent"
    cancelled = "cancelled"


class TrialSession(Base):
    __tablename__ = "trial_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    booking_id: Mapped[str] = mapped_column(String(36), nullable=False)
    student_name: Mapped[str] = mapped_column(String(200), nullable=False)
    subject_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    scheduled_date: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False)
    branch_id: Mapped[str] = mapped_column(String(36), nullable=False)
    room_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[TrialStatus] = mapped_column(
        SAEnum(TrialStatus, name="trial_status"),
        nullable=False,
        default=TrialStatus.scheduled,
    )
    attended: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

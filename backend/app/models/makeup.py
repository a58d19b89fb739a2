import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SAEnum, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class MakeupStatus(str, Enum):
    pending = "pending"
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"


class MakeupClass(Base):
    __tablename__ = "makeup_classes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    original_class_id: Mapped[str] = mapped_column(String(36), nullable=False)
    original_schedule_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False)
    student_name: Mapped[str] = mapped_column(String(200), nullable=False)
    student_nickname: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[MakeupStatus] = mapped_column(
        SAEnum(MakeupStatus, name="makeup_status"),
        nullable=False,
        default=MakeupStatus.pending,
    )
    makeup_date: Mapped[date | None] = mapped_column(Date, index=True, nullable=True)
    makeup_start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    makeup_end_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    makeup_teacher_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    makeup_branch_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    makeup_room_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def student_label(self) -> str:
        return self.student_nickname or self.student_name

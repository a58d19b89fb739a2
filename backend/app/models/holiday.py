import uuid
import datetime
from enum import Enum

from sqlalchemy import Date, Enum as SAEnum, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class HolidayType(str, Enum):
    national = "national"
    branch = "branch"


class Holiday(Base):
    __tablename__ = "holidays"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, index=True, nullable=False)
    type: Mapped[HolidayType] = mapped_column(SAEnum(HolidayType, name="holiday_type"), nullable=False)
    # Empty for national holidays.
    branches: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def applies_to(self, branch_id: str) -> bool:
        if self.type == HolidayType.national:
            return True
        return branch_id in (self.branches or [])

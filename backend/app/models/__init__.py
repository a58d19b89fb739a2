from app.models.branch import Branch  # noqa: F401
from app.models.holiday import Holiday, HolidayType  # noqa: F401
from app.models.makeup import MakeupClass, MakeupStatus  # noqa: F401
from app.models.room import Room  # noqa: F401
from app.models.school_class import (  # noqa: F401
    ClassSchedule,
    ClassStatus,
    SchoolClass,
    ScheduleStatus,
)
from app.models.subject import Subject  # noqa: F401
from app.models.teacher import Teacher  # noqa: F401
from app.models.trial import TrialSession, TrialStatus  # noqa: F401

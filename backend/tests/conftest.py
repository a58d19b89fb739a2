import os
from datetime import date
from types import SimpleNamespace

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.db.base import Base
from app.main import app
from app.models.branch import Branch
from app.models.holiday import Holiday, HolidayType
from app.models.makeup import MakeupClass, MakeupStatus
from app.models.room import Room
from app.models.school_class import ClassSchedule, ClassStatus, SchoolClass, ScheduleStatus
from app.models.subject import Subject
from app.models.teacher import Teacher
from app.models.trial import TrialSession, TrialStatus

MONDAY = date(2025, 1, 6)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def campus(db_session):
    """Two branches, three rooms, two teachers and one subject."""
    main = Branch(id="branch-main", name="Main Campus", code="MAIN")
    north = Branch(id="branch-north", name="North Campus", code="NORTH")
    studio = Room(id="room-studio", branch_id=main.id, name="Studio", capacity=8)
    lab = Room(id="room-lab", branch_id=main.id, name="Lab", capacity=12)
    hall = Room(id="room-hall", branch_id=north.id, name="Hall", capacity=20)
    ann = Teacher(
        id="teacher-ann",
        name="Ann Rivers",
        nickname="Ann",
        specialties=["robotics"],
        available_branches=[main.id, north.id],
    )
    ben = Teacher(id="teacher-ben", name="Ben Stone", specialties=["coding"], available_branches=[main.id])
    robotics = Subject(id="subject-robotics", name="Robotics", code="ROB", color="#FF5733")
    db_session.add_all([main, north, studio, lab, hall, ann, ben, robotics])
    db_session.commit()
    return SimpleNamespace(
        main=main,
        north=north,
        studio=studio,
        lab=lab,
        hall=hall,
        ann=ann,
        ben=ben,
        robotics=robotics,
    )


def add_class(
    db,
    *,
    code: str,
    branch_id: str,
    room_id: str,
    teacher_id: str,
    session_dates: list[date],
    start_time: str = "10:00",
    end_time: str = "11:00",
    subject_id: str = "subject-robotics",
    status: ClassStatus = ClassStatus.published,
) -> tuple[SchoolClass, list[ClassSchedule]]:
    school_class = SchoolClass(
        id=f"class-{code.lower()}",
        name=f"{code} Class",
        code=code,
        subject_id=subject_id,
        teacher_id=teacher_id,
        branch_id=branch_id,
        room_id=room_id,
        start_date=min(session_dates),
        end_date=max(session_dates),
        total_sessions=len(session_dates),
        days_of_week=sorted({(day.weekday() + 1) % 7 for day in session_dates}),
        start_time=start_time,
        end_time=end_time,
        status=status,
    )
    schedules = [
        ClassSchedule(
            id=f"{school_class.id}-s{number}",
            class_id=school_class.id,
            session_date=session_date,
            session_number=number,
            status=ScheduleStatus.scheduled,
        )
        for number, session_date in enumerate(session_dates, start=1)
    ]
    db.add(school_class)
    db.add_all(schedules)
    db.commit()
    return school_class, schedules


def add_makeup(
    db,
    *,
    makeup_id: str,
    student_id: str,
    student_name: str,
    original_schedule_id: str,
    original_class_id: str,
    makeup_date: date,
    start_time: str,
    end_time: str,
    branch_id: str,
    room_id: str,
    teacher_id: str,
    status: MakeupStatus = MakeupStatus.scheduled,
) -> MakeupClass:
    makeup = MakeupClass(
        id=makeup_id,
        original_class_id=original_class_id,
        original_schedule_id=original_schedule_id,
        student_id=student_id,
        student_name=student_name,
        status=status,
        makeup_date=makeup_date,
        makeup_start_time=start_time,
        makeup_end_time=end_time,
        makeup_teacher_id=teacher_id,
        makeup_branch_id=branch_id,
        makeup_room_id=room_id,
    )
    db.add(makeup)
    db.commit()
    return makeup


def add_trial(
    db,
    *,
    trial_id: str,
    student_name: str,
    scheduled_date: date,
    start_time: str,
    end_time: str,
    branch_id: str,
    room_id: str,
    teacher_id: str,
    status: TrialStatus = TrialStatus.scheduled,
) -> TrialSession:
    trial = TrialSession(
        id=trial_id,
        booking_id=f"booking-{trial_id}",
        student_name=student_name,
        subject_id="subject-robotics",
        scheduled_date=scheduled_date,
        start_time=start_time,
        end_time=end_time,
        teacher_id=teacher_id,
        branch_id=branch_id,
        room_id=room_id,
        status=status,
    )
    db.add(trial)
    db.commit()
    return trial


def add_holiday(
    db,
    *,
    name: str,
    on: date,
    branches: list[str] | None = None,
) -> Holiday:
    holiday = Holiday(
        name=name,
        date=on,
        type=HolidayType.branch if branches else HolidayType.national,
        branches=branches or [],
    )
    db.add(holiday)
    db.commit()
    return holiday

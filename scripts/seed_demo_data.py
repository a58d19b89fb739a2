"""Seed a demo branch, its rooms and teachers, and one published class.

Run:
  PYTHONPATH=backend python scripts/seed_demo_data.py
"""

from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import select

from app.db.bootstrap import ensure_schema
from app.db.session import SessionLocal
from app.models.branch import Branch
from app.models.holiday import Holiday, HolidayType
from app.models.room import Room
from app.models.school_class import ClassSchedule, ClassStatus, SchoolClass
from app.models.subject import Subject
from app.models.teacher import Teacher
from app.schemas.schedule import ScheduleProjectionInput
from app.services.projection import project_end_date

BRANCH_CODE = "DEMO"
ROOMS = [("Studio", 8), ("Lab", 12)]
TEACHERS = [("Demo Teacher One", "Teach1", ["robotics"]), ("Demo Teacher Two", None, ["coding"])]
CLASS_CODE = "DEMO-ROB-1"


def _next_monday(today: date) -> date:
    return today + timedelta(days=(7 - today.weekday()) % 7 or 7)


def _upsert_branch() -> Branch:
    with SessionLocal() as session:
        branch = session.execute(select(Branch).where(Branch.code == BRANCH_CODE)).scalar_one_or_none()
        if branch is None:
            branch = Branch(name="Demo Campus", code=BRANCH_CODE)
            session.add(branch)
        branch.is_active = True
        session.commit()
        session.refresh(branch)
        return branch


def _upsert_rooms(branch: Branch) -> list[Room]:
    rooms: list[Room] = []
    with SessionLocal() as session:
        for name, capacity in ROOMS:
            room = session.execute(
                select(Room).where(Room.branch_id == branch.id, Room.name == name)
            ).scalar_one_or_none()
            if room is None:
                room = Room(branch_id=branch.id, name=name)
                session.add(room)
            room.capacity = capacity
            room.is_active = True
            rooms.append(room)
        session.commit()
        for room in rooms:
            session.refresh(room)
    return rooms


def _upsert_teachers(branch: Branch) -> list[Teacher]:
    teachers: list[Teacher] = []
    with SessionLocal() as session:
        for name, nickname, specialties in TEACHERS:
            teacher = session.execute(select(Teacher).where(Teacher.name == name)).scalar_one_or_none()
            if teacher is None:
                teacher = Teacher(name=name)
                session.add(teacher)
            teacher.nickname = nickname
            teacher.specialties = specialties
            teacher.available_branches = [branch.id]
            teacher.is_active = True
            teachers.append(teacher)
        session.commit()
        for teacher in teachers:
            session.refresh(teacher)
    return teachers


def _upsert_subject() -> Subject:
    with SessionLocal() as session:
        subject = session.execute(select(Subject).where(Subject.code == "ROB")).scalar_one_or_none()
        if subject is None:
            subject = Subject(name="Robotics", code="ROB", color="#FF5733")
            session.add(subject)
        session.commit()
        session.refresh(subject)
        return subject


def _ensure_holiday(branch: Branch, on: date) -> None:
    with SessionLocal() as session:
        existing = session.execute(
            select(Holiday).where(Holiday.date == on, Holiday.name == "Demo Campus Day")
        ).scalar_one_or_none()
        if existing is None:
            session.add(
                Holiday(
                    name="Demo Campus Day",
                    date=on,
                    type=HolidayType.branch,
                    branches=[branch.id],
                    description="Seeded demo holiday",
                )
            )
            session.commit()


def _publish_class(branch: Branch, room: Room, teacher: Teacher, subject: Subject, start: date) -> SchoolClass:
    with SessionLocal() as session:
        projection = project_end_date(
            session,
            ScheduleProjectionInput(start_date=start, days_of_week=[1, 3], total_sessions=8, branch_id=branch.id),
        )
        school_class = session.execute(select(SchoolClass).where(SchoolClass.code == CLASS_CODE)).scalar_one_or_none()
        if school_class is None:
            school_class = SchoolClass(code=CLASS_CODE)
            session.add(school_class)
        school_class.name = "Robotics Starter"
        school_class.subject_id = subject.id
        school_class.teacher_id = teacher.id
        school_class.branch_id = branch.id
        school_class.room_id = room.id
        school_class.start_date = start
        school_class.end_date = projection.end_date
        school_class.total_sessions = len(projection.session_dates)
        school_class.days_of_week = [1, 3]
        school_class.start_time = "10:00"
        school_class.end_time = "11:30"
        school_class.status = ClassStatus.published
        session.flush()

        for schedule in session.execute(
            select(ClassSchedule).where(ClassSchedule.class_id == school_class.id)
        ).scalars():
            session.delete(schedule)
        session.add_all(
            ClassSchedule(class_id=school_class.id, session_date=session_date, session_number=number)
            for number, session_date in enumerate(projection.session_dates, start=1)
        )
        session.commit()
        session.refresh(school_class)
        return school_class


def main() -> None:
    ensure_schema()
    start = _next_monday(date.today())

    branch = _upsert_branch()
    rooms = _upsert_rooms(branch)
    teachers = _upsert_teachers(branch)
    subject = _upsert_subject()
    _ensure_holiday(branch, start + timedelta(days=9))
    school_class = _publish_class(branch, rooms[0], teachers[0], subject, start)

    print("\nDemo data ready:")
    print(f"  - branch: {branch.name} ({branch.id})")
    print(f"  - rooms: {', '.join(room.name for room in rooms)}")
    print(f"  - teachers: {', '.join(teacher.name for teacher in teachers)}")
    print(f"  - class: {school_class.name} {school_class.start_date} -> {school_class.end_date}")


if __name__ == "__main__":
    main()

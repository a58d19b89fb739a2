"""Read-side queries the availability engine depends on.

Every function takes the request's ``Session`` and returns ORM rows. Date ranges
are inclusive. Commitment queries accept ``branch_id=None`` to read across
every branch, which the teacher axis needs because a teacher cannot be in two
branches at once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import DataUnavailableError
from app.models.branch import Branch
from app.models.holiday import Holiday
from app.models.makeup import MakeupClass, MakeupStatus
from app.models.room import Room
from app.models.school_class import ClassSchedule, ClassStatus, SchoolClass, ScheduleStatus
from app.models.subject import Subject
from app.models.teacher import Teacher
from app.models.trial import TrialSession, TrialStatus

logger = logging.getLogger(__name__)

# Classes whose sessions occupy rooms and teachers.
BUSY_CLASS_STATUSES = (ClassStatus.published, ClassStatus.started, ClassStatus.completed)


@contextmanager
def _query_guard(source: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Query for %s failed", source)
        raise DataUnavailableError(source, details={"error": exc.__class__.__name__}) from exc


def get_branch(db: Session, branch_id: str) -> Branch | None:
    with _query_guard("branch"):
        return db.get(Branch, branch_id)


def get_holidays_for_branch(db: Session, branch_id: str, start_date: date, end_date: date) -> list[Holiday]:
    with _query_guard("holidays"):
        rows = db.execute(
            select(Holiday)
            .where(Holiday.date >= start_date, Holiday.date <= end_date)
            .order_by(Holiday.date)
        ).scalars()
        return [holiday for holiday in rows if holiday.applies_to(branch_id)]


def get_class_sessions_in_range(
    db: Session,
    *,
    start_date: date,
    end_date: date,
    branch_id: str | None = None,
) -> list[tuple[ClassSchedule, SchoolClass]]:
    query = (
        select(ClassSchedule, SchoolClass)
        .join(SchoolClass, SchoolClass.id == ClassSchedule.class_id)
        .where(
            ClassSchedule.session_date >= start_date,
            ClassSchedule.session_date <= end_date,
            ClassSchedule.status != ScheduleStatus.cancelled,
            SchoolClass.status.in_(BUSY_CLASS_STATUSES),
        )
        .order_by(ClassSchedule.session_date, SchoolClass.start_time)
    )
    if branch_id is not None:
        query = query.where(SchoolClass.branch_id == branch_id)
    with _query_guard("class sessions"):
        return [(schedule, school_class) for schedule, school_class in db.execute(query)]


def get_scheduled_makeups_in_range(
    db: Session,
    *,
    start_date: date,
    end_date: date,
    branch_id: str | None = None,
) -> list[MakeupClass]:
    query = select(MakeupClass).where(
        MakeupClass.status == MakeupStatus.scheduled,
        MakeupClass.makeup_date.is_not(None),
        MakeupClass.makeup_date >= start_date,
        MakeupClass.makeup_date <= end_date,
    )
    if branch_id is not None:
        query = query.where(MakeupClass.makeup_branch_id == branch_id)
    with _query_guard("makeup classes"):
        return list(db.execute(query.order_by(MakeupClass.makeup_date, MakeupClass.makeup_start_time)).scalars())


def get_scheduled_trials_in_range(
    db: Session,
    *,
    start_date: date,
    end_date: date,
    branch_id: str | None = None,
) -> list[TrialSession]:
    query = select(TrialSession).where(
        TrialSession.status == TrialStatus.scheduled,
        TrialSession.scheduled_date >= start_date,
        TrialSession.scheduled_date <= end_date,
    )
    if branch_id is not None:
        query = query.where(TrialSession.branch_id == branch_id)
    with _query_guard("trial sessions"):
        return list(db.execute(query.order_by(TrialSession.scheduled_date, TrialSession.start_time)).scalars())


def get_makeup(db: Session, makeup_id: str) -> MakeupClass | None:
    with _query_guard("makeup class"):
        return db.get(MakeupClass, makeup_id)


def get_active_rooms_by_branch(db: Session, branch_id: str) -> list[Room]:
    with _query_guard("rooms"):
        return list(
            db.execute(
                select(Room).where(Room.branch_id == branch_id, Room.is_active.is_(True)).order_by(Room.name)
            ).scalars()
        )


def get_active_teachers_by_branch(db: Session, branch_id: str) -> list[Teacher]:
    with _query_guard("teachers"):
        teachers = db.execute(select(Teacher).where(Teacher.is_active.is_(True)).order_by(Teacher.name)).scalars()
        return [teacher for teacher in teachers if branch_id in (teacher.available_branches or [])]


def get_rooms(db: Session, room_ids: Iterable[str]) -> dict[str, Room]:
    ids = {room_id for room_id in room_ids if room_id}
    if not ids:
        return {}
    with _query_guard("rooms"):
        return {room.id: room for room in db.execute(select(Room).where(Room.id.in_(ids))).scalars()}


def get_teachers(db: Session, teacher_ids: Iterable[str]) -> dict[str, Teacher]:
    ids = {teacher_id for teacher_id in teacher_ids if teacher_id}
    if not ids:
        return {}
    with _query_guard("teachers"):
        return {
            teacher.id: teacher
            for teacher in db.execute(select(Teacher).where(Teacher.id.in_(ids))).scalars()
        }


def get_subjects(db: Session, subject_ids: Iterable[str]) -> dict[str, Subject]:
    ids = {subject_id for subject_id in subject_ids if subject_id}
    if not ids:
        return {}
    with _query_guard("subjects"):
        return {
            subject.id: subject
            for subject in db.execute(select(Subject).where(Subject.id.in_(ids))).scalars()
        }


def get_classes(db: Session, class_ids: Iterable[str]) -> dict[str, SchoolClass]:
    ids = {class_id for class_id in class_ids if class_id}
    if not ids:
        return {}
    with _query_guard("classes"):
        return {
            school_class.id: school_class
            for school_class in db.execute(select(SchoolClass).where(SchoolClass.id.in_(ids))).scalars()
        }

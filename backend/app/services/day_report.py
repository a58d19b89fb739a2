from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from typing import Literal

from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError, SchedulingValidationError
from app.schemas.availability import (
    DayReport,
    RoomAvailabilityData,
    RoomSummary,
    SlotConflict,
    TeacherAvailabilityData,
    TeacherSummary,
    TimeSlot,
)
from app.services.commitments import (
    ClassCommitment,
    Commitment,
    CommitmentEnumerator,
    CommitmentGroup,
    MakeupCommitment,
    TrialCommitment,
    group_commitments,
)
from app.services.holidays import HolidayIndex
from app.services.scheduling_data import get_active_rooms_by_branch, get_active_teachers_by_branch, get_branch
from app.services.time_window import TimeWindow

logger = logging.getLogger(__name__)

SlotAlignment = Literal["00", "30"]


def generate_time_slots(
    start_time: str,
    end_time: str,
    slot_minutes: int,
    alignment: SlotAlignment | None = None,
) -> list[TimeWindow]:
    """Fixed-width slots covering ``start_time``..``end_time``; the last slot is clipped to the end.

    ``alignment`` moves the first slot forward to the next full hour ("00") or
    half hour ("30").
    """
    if slot_minutes <= 0:
        raise SchedulingValidationError("slot_minutes must be positive", details={"slot_minutes": slot_minutes})
    span = TimeWindow.parse(start_time, end_time)

    cursor = span.start
    if alignment == "00":
        cursor += (60 - cursor % 60) % 60
    elif alignment == "30":
        cursor += (30 - cursor % 60) % 60
    elif alignment is not None:
        raise SchedulingValidationError("alignment must be '00' or '30'", details={"alignment": alignment})

    slots: list[TimeWindow] = []
    while cursor < span.end:
        slot_end = min(cursor + slot_minutes, span.end)
        slots.append(TimeWindow(cursor, slot_end))
        cursor = slot_end
    return slots


def _slot_conflict(group: CommitmentGroup) -> SlotConflict:
    first = group.first
    conflict = SlotConflict(
        type=group.origin,
        name=group.label,
        subject_id=first.subject_id,
        subject_color=first.subject_color,
    )
    if isinstance(first, ClassCommitment):
        conflict.class_id = first.class_id
        conflict.session_number = first.session_number
        conflict.total_sessions = first.total_sessions
        conflict.is_completed = first.is_completed
    elif isinstance(first, (MakeupCommitment, TrialCommitment)):
        conflict.student_count = group.count
    else:
        raise TypeError(f"Unknown commitment variant: {type(first).__name__}")
    return conflict


def mark_slots(slots: Iterable[TimeWindow], commitments: list[Commitment]) -> list[TimeSlot]:
    marked: list[TimeSlot] = []
    for window in slots:
        hits = [commitment for commitment in commitments if commitment.window.overlaps(window)]
        marked.append(
            TimeSlot(
                start_time=window.start_time,
                end_time=window.end_time,
                available=not hits,
                conflicts=[_slot_conflict(group) for group in group_commitments(hits)],
            )
        )
    return marked


def build_day_report(
    db: Session,
    *,
    branch_id: str,
    day: date,
    start_time: str,
    end_time: str,
    slot_minutes: int,
    alignment: SlotAlignment | None = None,
) -> DayReport:
    slots = generate_time_slots(start_time, end_time, slot_minutes, alignment)
    if get_branch(db, branch_id) is None:
        raise ResourceNotFoundError("Branch", branch_id)

    holidays = HolidayIndex(db)
    holiday = holidays.holiday_on(branch_id, day)
    enumerator = CommitmentEnumerator(db, holiday_index=holidays)

    rooms = get_active_rooms_by_branch(db, branch_id)
    teachers = get_active_teachers_by_branch(db, branch_id)
    scope = enumerator.scope_for(
        branch_id,
        room_ids=[room.id for room in rooms],
        teacher_ids=[teacher.id for teacher in teachers],
    )
    commitments = enumerator.enumerate(start_date=day, end_date=day, scope=scope)

    def busy_for(**ids) -> list[Commitment]:
        return enumerator.select_conflicts(commitments, scope=enumerator.scope_for(branch_id, **ids))

    room_rows = [
        RoomAvailabilityData(
            room=RoomSummary.model_validate(room),
            slots=mark_slots(slots, busy_for(room_ids=[room.id])),
        )
        for room in rooms
    ]
    teacher_rows = [
        TeacherAvailabilityData(
            teacher=TeacherSummary.model_validate(teacher),
            specialties=list(teacher.specialties or []),
            slots=mark_slots(slots, busy_for(teacher_ids=[teacher.id])),
        )
        for teacher in teachers
    ]

    logger.debug(
        "Built day report for branch %s on %s: %d room(s), %d teacher(s), %d slot(s)",
        branch_id,
        day,
        len(room_rows),
        len(teacher_rows),
        len(slots),
    )
    return DayReport(
        date=day,
        branch_id=branch_id,
        is_holiday=holiday is not None,
        holiday_name=holiday.name if holiday else None,
        start_time=start_time,
        end_time=end_time,
        slot_minutes=slot_minutes,
        rooms=room_rows,
        teachers=teacher_rows,
    )

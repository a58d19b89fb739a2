from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from app.schemas.availability import (
    AvailabilityIssue,
    AvailabilityRequest,
    AvailabilityResult,
    AvailabilityWarning,
    BusySlot,
    DayConflicts,
    IssueDetails,
)
from app.services.commitments import (
    ClassCommitment,
    CommitmentEnumerator,
    CommitmentGroup,
    Exclusion,
    MakeupCommitment,
    TrialCommitment,
    group_commitments,
)
from app.services.holidays import HolidayIndex
from app.services.scheduling_data import get_rooms, get_teachers
from app.services.time_window import TimeWindow

logger = logging.getLogger(__name__)


def describe_group(group: CommitmentGroup) -> str:
    first = group.first
    if isinstance(first, ClassCommitment):
        return f"class {group.name}"
    if isinstance(first, MakeupCommitment):
        singular, plural = "makeup class", "makeup classes"
    elif isinstance(first, TrialCommitment):
        singular, plural = "trial session", "trial sessions"
    else:
        raise TypeError(f"Unknown commitment variant: {type(first).__name__}")
    if group.count == 1:
        return f"{singular} for {group.name}"
    return f"{plural} for {group.count} students ({group.name})"


def _issue_details(group: CommitmentGroup) -> IssueDetails:
    return IssueDetails(
        conflict_type=group.origin,
        conflict_name=group.name,
        conflict_time=group.window.label,
        student_names=group.student_names,
        count=group.count,
    )


class AvailabilityChecker:
    """Point-in-time advisory check for one candidate booking.

    A holiday always blocks. Room and teacher overlaps block unless the caller
    sets ``allow_conflicts``, in which case they are returned as warnings.
    Data-layer failures propagate as ``DataUnavailableError``; an unknown state
    is never reported as available.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.holidays = HolidayIndex(db)
        self.enumerator = CommitmentEnumerator(db, holiday_index=self.holidays)

    def check(self, request: AvailabilityRequest) -> AvailabilityResult:
        window = TimeWindow.parse(request.start_time, request.end_time)
        exclusion = Exclusion(request.exclude_id, request.exclude_type) if request.exclude_id else None

        reasons: list[AvailabilityIssue] = []
        warnings: list[AvailabilityWarning] = []

        holiday = self.holidays.holiday_on(request.branch_id, request.date)
        if holiday is not None:
            reasons.append(
                AvailabilityIssue(
                    type="holiday",
                    message=f"Selected date is a holiday ({holiday.name})",
                    details=IssueDetails(holiday_name=holiday.name),
                )
            )

        for issue in self._conflict_issues(request, window, exclusion):
            if request.allow_conflicts:
                warnings.append(AvailabilityWarning(type=issue.type, message=issue.message, details=issue.details))
            else:
                reasons.append(issue)

        if reasons:
            logger.info(
                "Slot %s %s blocked for branch %s (room=%s teacher=%s): %s",
                request.date,
                window.label,
                request.branch_id,
                request.room_id,
                request.teacher_id,
                ", ".join(reason.type for reason in reasons),
            )
        return AvailabilityResult(available=not reasons, reasons=reasons, warnings=warnings)

    def _conflict_issues(
        self,
        request: AvailabilityRequest,
        window: TimeWindow,
        exclusion: Exclusion | None,
    ) -> list[AvailabilityIssue]:
        scope = self.enumerator.scope_for(
            request.branch_id, room_ids=[request.room_id], teacher_ids=[request.teacher_id]
        )
        if scope.is_empty:
            return []
        commitments = self.enumerator.enumerate(start_date=request.date, end_date=request.date, scope=scope)

        issues: list[AvailabilityIssue] = []
        if request.room_id is not None:
            room_hits = self.enumerator.select_conflicts(
                commitments,
                scope=self.enumerator.scope_for(request.branch_id, room_ids=[request.room_id]),
                window=window,
                exclusion=exclusion,
            )
            if room_hits:
                room = get_rooms(self.db, [request.room_id]).get(request.room_id)
                room_name = room.name if room else request.room_id
                for group in group_commitments(room_hits):
                    issues.append(
                        AvailabilityIssue(
                            type="room_conflict",
                            message=f"Room {room_name} is not available - {describe_group(group)} at {group.window.label}",
                            details=_issue_details(group),
                        )
                    )

        if request.teacher_id is not None:
            teacher_hits = self.enumerator.select_conflicts(
                commitments,
                scope=self.enumerator.scope_for(request.branch_id, teacher_ids=[request.teacher_id]),
                window=window,
                exclusion=exclusion,
            )
            if teacher_hits:
                teacher = get_teachers(self.db, [request.teacher_id]).get(request.teacher_id)
                teacher_name = teacher.display_name if teacher else request.teacher_id
                for group in group_commitments(teacher_hits):
                    issues.append(
                        AvailabilityIssue(
                            type="teacher_conflict",
                            message=(
                                f"Teacher {teacher_name} is not available - "
                                f"{describe_group(group)} at {group.window.label}"
                            ),
                            details=_issue_details(group),
                        )
                    )
        return issues


def check_availability(db: Session, request: AvailabilityRequest) -> AvailabilityResult:
    return AvailabilityChecker(db).check(request)


def is_time_slot_available(db: Session, request: AvailabilityRequest) -> bool:
    return check_availability(db, request).available


def _busy_slot(group: CommitmentGroup, room_names: dict[str, str], teacher_names: dict[str, str]) -> BusySlot:
    first = group.first
    slot = BusySlot(
        start_time=group.window.start_time,
        end_time=group.window.end_time,
        type=group.origin,
        name=group.label,
        room_id=first.room_id,
        room_name=room_names.get(first.room_id or "", first.room_id),
        teacher_id=first.teacher_id,
        teacher_name=teacher_names.get(first.teacher_id or "", first.teacher_id),
        subject_id=first.subject_id,
        subject_color=first.subject_color,
    )
    if isinstance(first, ClassCommitment):
        slot.class_id = first.class_id
        slot.session_number = first.session_number
        slot.total_sessions = first.total_sessions
        slot.is_completed = first.is_completed
    elif isinstance(first, (MakeupCommitment, TrialCommitment)):
        slot.student_names = group.student_names
        slot.student_count = group.count
    else:
        raise TypeError(f"Unknown commitment variant: {type(first).__name__}")
    return slot


def get_day_conflicts(db: Session, branch_id: str, day: date) -> DayConflicts:
    """Every busy slot of a branch on one day, for calendar and report views."""
    holidays = HolidayIndex(db)
    holiday = holidays.holiday_on(branch_id, day)
    commitments = CommitmentEnumerator(db, holiday_index=holidays).enumerate(
        start_date=day, end_date=day, branch_id=branch_id
    )
    groups = group_commitments(commitments)

    rooms = get_rooms(db, (group.first.room_id for group in groups))
    teachers = get_teachers(db, (group.first.teacher_id for group in groups))
    room_names = {room_id: room.name for room_id, room in rooms.items()}
    teacher_names = {teacher_id: teacher.display_name for teacher_id, teacher in teachers.items()}

    busy_slots = [_busy_slot(group, room_names, teacher_names) for group in groups]
    busy_slots.sort(key=lambda slot: (slot.start_time, slot.end_time))
    return DayConflicts(
        date=day,
        branch_id=branch_id,
        is_holiday=holiday is not None,
        holiday_name=holiday.name if holiday else None,
        busy_slots=busy_slots,
    )

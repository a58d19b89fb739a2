from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import ClassVar

from sqlalchemy.orm import Session

from app.core.exceptions import DataUnavailableError, SchedulingValidationError
from app.models.makeup import MakeupClass
from app.models.school_class import ClassSchedule, ClassStatus, SchoolClass
from app.models.subject import Subject
from app.models.trial import TrialSession
from app.services.holidays import HolidayIndex
from app.services.scheduling_data import (
    get_class_sessions_in_range,
    get_classes,
    get_makeup,
    get_scheduled_makeups_in_range,
    get_scheduled_trials_in_range,
    get_subjects,
)
from app.services.time_window import TimeWindow, normalize_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Exclusion:
    """Identity of the record being edited, so it never conflicts with itself."""

    id: str
    origin: str | None = None


@dataclass(frozen=True, kw_only=True)
class _Commitment:
    origin: ClassVar[str]

    session_date: date
    window: TimeWindow
    branch_id: str
    room_id: str | None
    teacher_id: str | None
    label: str
    source_id: str
    subject_id: str | None = None
    subject_color: str | None = None

    @property
    def exclude_keys(self) -> frozenset[str]:
        return frozenset({self.source_id})

    def is_excluded_by(self, exclusion: Exclusion | None) -> bool:
        if exclusion is None:
            return False
        if exclusion.origin is not None and exclusion.origin != self.origin:
            return False
        return exclusion.id in self.exclude_keys


@dataclass(frozen=True, kw_only=True)
class ClassCommitment(_Commitment):
    origin: ClassVar[str] = "class"

    class_id: str
    session_number: int
    total_sessions: int
    is_completed: bool = False

    @property
    def exclude_keys(self) -> frozenset[str]:
        # Editing a class excludes every session of it; editing one session excludes just that row.
        return frozenset({self.source_id, self.class_id})


@dataclass(frozen=True, kw_only=True)
class MakeupCommitment(_Commitment):
    origin: ClassVar[str] = "makeup"

    original_schedule_id: str
    student_id: str
    student_name: str


@dataclass(frozen=True, kw_only=True)
class TrialCommitment(_Commitment):
    origin: ClassVar[str] = "trial"

    student_name: str
    attended: bool | None = None


Commitment = ClassCommitment | MakeupCommitment | TrialCommitment


@dataclass(frozen=True)
class CommitmentGroup:
    origin: str
    members: tuple[Commitment, ...]

    @property
    def first(self) -> Commitment:
        return self.members[0]

    @property
    def count(self) -> int:
        return len(self.members)

    @property
    def window(self) -> TimeWindow:
        return self.first.window

    @property
    def student_names(self) -> list[str]:
        return [member.student_name for member in self.members if not isinstance(member, ClassCommitment)]

    @property
    def name(self) -> str:
        first = self.first
        if isinstance(first, ClassCommitment):
            return first.label
        if isinstance(first, (MakeupCommitment, TrialCommitment)):
            return ", ".join(self.student_names)
        raise TypeError(f"Unknown commitment variant: {type(first).__name__}")

    @property
    def label(self) -> str:
        first = self.first
        if isinstance(first, ClassCommitment):
            return first.label
        if isinstance(first, MakeupCommitment):
            prefix = "Makeup"
        elif isinstance(first, TrialCommitment):
            prefix = "Trial"
        else:
            raise TypeError(f"Unknown commitment variant: {type(first).__name__}")
        if self.count == 1:
            return f"{prefix}: {self.name}"
        return f"{prefix} ({self.count} students): {self.name}"


def _group_key(commitment: Commitment) -> tuple:
    if isinstance(commitment, ClassCommitment):
        return ("class", commitment.source_id)
    if isinstance(commitment, (MakeupCommitment, TrialCommitment)):
        return (
            commitment.origin,
            commitment.session_date,
            commitment.window,
            commitment.room_id,
            commitment.teacher_id,
        )
    raise TypeError(f"Unknown commitment variant: {type(commitment).__name__}")


def group_commitments(commitments: Iterable[Commitment]) -> list[CommitmentGroup]:
    """Collapse makeup/trial students sharing one slot into a single group; classes stay one per session."""
    grouped: dict[tuple, list[Commitment]] = {}
    for commitment in commitments:
        grouped.setdefault(_group_key(commitment), []).append(commitment)
    return [CommitmentGroup(origin=members[0].origin, members=tuple(members)) for members in grouped.values()]


@dataclass(frozen=True)
class CommitmentScope:
    """The rooms and teachers a query is about.

    Rooms only match inside ``branch_id``; teachers match in every branch, so a
    scope with teachers reads commitments across all branches.
    """

    branch_id: str
    room_ids: frozenset[str] = frozenset()
    teacher_ids: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.room_ids and not self.teacher_ids

    @property
    def query_branch_id(self) -> str | None:
        return None if self.teacher_ids else self.branch_id

    def touches(self, branch_id: str | None, room_id: str | None, teacher_id: str | None) -> bool:
        on_room = room_id is not None and room_id in self.room_ids and branch_id == self.branch_id
        on_teacher = teacher_id is not None and teacher_id in self.teacher_ids
        return on_room or on_teacher


def _record_window(
    kind: str,
    record_id: str,
    start_time: str | None,
    end_time: str | None,
    *,
    scope: CommitmentScope | None,
    branch_id: str | None,
    room_id: str | None,
    teacher_id: str | None,
) -> TimeWindow | None:
    """Window of a stored record, or ``None`` when it is unreadable and outside ``scope``."""
    try:
        return TimeWindow.parse(normalize_time(start_time), normalize_time(end_time))
    except SchedulingValidationError as exc:
        if scope is not None and not scope.touches(branch_id, room_id, teacher_id):
            logger.warning(
                "Skipping stored %s %s with invalid time window %r-%r",
                kind,
                record_id,
                start_time,
                end_time,
            )
            return None
        logger.error("Stored %s %s has an invalid time window %r-%r", kind, record_id, start_time, end_time)
        raise DataUnavailableError(f"{kind} {record_id}", details={"reason": exc.message}) from exc


class CommitmentEnumerator:
    def __init__(self, db: Session, holiday_index: HolidayIndex | None = None) -> None:
        self.db = db
        self.holidays = holiday_index or HolidayIndex(db)

    @staticmethod
    def scope_for(
        branch_id: str,
        *,
        room_ids: Iterable[str | None] = (),
        teacher_ids: Iterable[str | None] = (),
    ) -> CommitmentScope:
        return CommitmentScope(
            branch_id=branch_id,
            room_ids=frozenset(room_id for room_id in room_ids if room_id),
            teacher_ids=frozenset(teacher_id for teacher_id in teacher_ids if teacher_id),
        )

    def enumerate(
        self,
        *,
        start_date: date,
        end_date: date,
        branch_id: str | None = None,
        scope: CommitmentScope | None = None,
    ) -> list[Commitment]:
        """All busy intervals in the inclusive range.

        ``branch_id=None`` covers every branch. With a ``scope`` the branch filter
        comes from the scope, and a stored record whose time window cannot be read
        only fails the call when the scope touches its room or teacher; otherwise
        it is skipped.
        """
        if end_date < start_date:
            raise SchedulingValidationError(
                "end_date must not be before start_date",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        if scope is not None:
            branch_id = scope.query_branch_id

        class_rows = get_class_sessions_in_range(self.db, start_date=start_date, end_date=end_date, branch_id=branch_id)
        makeups = get_scheduled_makeups_in_range(self.db, start_date=start_date, end_date=end_date, branch_id=branch_id)
        trials = get_scheduled_trials_in_range(self.db, start_date=start_date, end_date=end_date, branch_id=branch_id)

        original_classes = get_classes(self.db, (makeup.original_class_id for makeup in makeups))
        subject_ids = [school_class.subject_id for _, school_class in class_rows]
        subject_ids.extend(school_class.subject_id for school_class in original_classes.values())
        subject_ids.extend(trial.subject_id for trial in trials)
        subjects = get_subjects(self.db, subject_ids)

        commitments: list[Commitment] = []
        commitments.extend(self._class_commitments(class_rows, subjects, start_date, end_date, scope))
        commitments.extend(self._makeup_commitments(makeups, original_classes, subjects, scope))
        commitments.extend(self._trial_commitments(trials, subjects, scope))
        commitments.sort(key=lambda item: (item.session_date, item.window, item.origin, item.source_id))

        logger.debug(
            "Enumerated %d commitment(s) for branch %s between %s and %s",
            len(commitments),
            branch_id or "*",
            start_date,
            end_date,
        )
        return commitments

    def find_conflicts(
        self,
        *,
        branch_id: str,
        start_date: date,
        end_date: date,
        window: TimeWindow | None = None,
        room_id: str | None = None,
        teacher_id: str | None = None,
        exclusion: Exclusion | None = None,
    ) -> list[Commitment]:
        scope = self.scope_for(branch_id, room_ids=[room_id], teacher_ids=[teacher_id])
        if scope.is_empty:
            return []
        commitments = self.enumerate(start_date=start_date, end_date=end_date, scope=scope)
        return self.select_conflicts(commitments, scope=scope, window=window, exclusion=exclusion)

    def select_conflicts(
        self,
        commitments: Iterable[Commitment],
        *,
        scope: CommitmentScope,
        window: TimeWindow | None = None,
        exclusion: Exclusion | None = None,
    ) -> list[Commitment]:
        sibling_key = self._makeup_sibling_key(exclusion)
        matches: list[Commitment] = []
        for commitment in commitments:
            if commitment.is_excluded_by(exclusion):
                continue
            if window is not None and not commitment.window.overlaps(window):
                continue
            if sibling_key is not None and self._is_makeup_sibling(commitment, sibling_key):
                continue
            if scope.touches(commitment.branch_id, commitment.room_id, commitment.teacher_id):
                matches.append(commitment)
        return matches

    def _makeup_sibling_key(self, exclusion: Exclusion | None) -> tuple[str, str] | None:
        if exclusion is None or exclusion.origin != MakeupCommitment.origin:
            return None
        makeup = get_makeup(self.db, exclusion.id)
        if makeup is None:
            return None
        return (makeup.original_schedule_id, makeup.student_id)

    @staticmethod
    def _is_makeup_sibling(commitment: Commitment, sibling_key: tuple[str, str]) -> bool:
        # Students who missed the same session may share one makeup slot.
        if not isinstance(commitment, MakeupCommitment):
            return False
        original_schedule_id, student_id = sibling_key
        return commitment.original_schedule_id == original_schedule_id and commitment.student_id != student_id

    def _class_commitments(
        self,
        rows: list[tuple[ClassSchedule, SchoolClass]],
        subjects: dict[str, Subject],
        start_date: date,
        end_date: date,
        scope: CommitmentScope | None,
    ) -> Iterable[ClassCommitment]:
        holiday_dates: dict[str, set[date]] = {}
        for schedule, school_class in rows:
            if school_class.branch_id not in holiday_dates:
                holiday_dates[school_class.branch_id] = self.holidays.holiday_dates(
                    school_class.branch_id, start_date, end_date
                )
            if schedule.session_date in holiday_dates[school_class.branch_id]:
                continue
            teacher_id = schedule.actual_teacher_id or school_class.teacher_id
            window = _record_window(
                "class",
                school_class.id,
                school_class.start_time,
                school_class.end_time,
                scope=scope,
                branch_id=school_class.branch_id,
                room_id=school_class.room_id,
                teacher_id=teacher_id,
            )
            if window is None:
                continue
            subject = subjects.get(school_class.subject_id)
            yield ClassCommitment(
                session_date=schedule.session_date,
                window=window,
                branch_id=school_class.branch_id,
                room_id=school_class.room_id,
                teacher_id=teacher_id,
                label=school_class.name,
                source_id=schedule.id,
                subject_id=school_class.subject_id,
                subject_color=subject.color if subject else None,
                class_id=school_class.id,
                session_number=schedule.session_number,
                total_sessions=school_class.total_sessions,
                is_completed=school_class.status == ClassStatus.completed,
            )

    def _makeup_commitments(
        self,
        makeups: list[MakeupClass],
        original_classes: dict[str, SchoolClass],
        subjects: dict[str, Subject],
        scope: CommitmentScope | None,
    ) -> Iterable[MakeupCommitment]:
        for makeup in makeups:
            window = _record_window(
                "makeup",
                makeup.id,
                makeup.makeup_start_time,
                makeup.makeup_end_time,
                scope=scope,
                branch_id=makeup.makeup_branch_id,
                room_id=makeup.makeup_room_id,
                teacher_id=makeup.makeup_teacher_id,
            )
            if window is None:
                continue
            original_class = original_classes.get(makeup.original_class_id)
            subject = subjects.get(original_class.subject_id) if original_class else None
            yield MakeupCommitment(
                session_date=makeup.makeup_date,
                window=window,
                branch_id=makeup.makeup_branch_id,
                room_id=makeup.makeup_room_id,
                teacher_id=makeup.makeup_teacher_id,
                label=f"Makeup: {makeup.student_label}",
                source_id=makeup.id,
                subject_id=subject.id if subject else None,
                subject_color=subject.color if subject else None,
                original_schedule_id=makeup.original_schedule_id,
                student_id=makeup.student_id,
                student_name=makeup.student_label,
            )

    def _trial_commitments(
        self,
        trials: list[TrialSession],
        subjects: dict[str, Subject],
        scope: CommitmentScope | None,
    ) -> Iterable[TrialCommitment]:
        for trial in trials:
            window = _record_window(
                "trial",
                trial.id,
                trial.start_time,
                trial.end_time,
                scope=scope,
                branch_id=trial.branch_id,
                room_id=trial.room_id,
                teacher_id=trial.teacher_id,
            )
            if window is None:
                continue
            subject = subjects.get(trial.subject_id) if trial.subject_id else None
            yield TrialCommitment(
                session_date=trial.scheduled_date,
                window=window,
                branch_id=trial.branch_id,
                room_id=trial.room_id,
                teacher_id=trial.teacher_id,
                label=f"Trial: {trial.student_name}",
                source_id=trial.id,
                subject_id=trial.subject_id,
                subject_color=subject.color if subject else None,
                student_name=trial.student_name,
                attended=trial.attended,
            )

from datetime import timedelta

import pytest
from conftest import MONDAY, add_class, add_holiday, add_makeup, add_trial

from app.core.exceptions import DataUnavailableError
from app.schemas.availability import AvailabilityRequest
from app.services.availability import check_availability, get_day_conflicts, is_time_slot_available


def _request(campus, **overrides) -> AvailabilityRequest:
    values = {
        "date": MONDAY,
        "start_time": "10:30",
        "end_time": "11:30",
        "branch_id": campus.main.id,
        "room_id": campus.studio.id,
        "teacher_id": campus.ben.id,
    }
    values.update(overrides)
    return AvailabilityRequest(**values)


def _raise_unavailable(*args, **kwargs):
    raise DataUnavailableError("class sessions")


@pytest.fixture()
def robotics_class(db_session, campus):
    school_class, _ = add_class(
        db_session,
        code="ROB1",
        branch_id=campus.main.id,
        room_id=campus.studio.id,
        teacher_id=campus.ann.id,
        session_dates=[MONDAY, MONDAY + timedelta(days=7)],
    )
    return school_class


def test_clean_booking_is_available(db_session, campus, robotics_class):
    result = check_availability(db_session, _request(campus, room_id=campus.lab.id))

    assert result.available is True
    assert result.reasons == []
    assert result.warnings == []


def test_touching_windows_do_not_conflict(db_session, campus, robotics_class):
    result = check_availability(db_session, _request(campus, start_time="11:00", end_time="12:00"))
    assert result.available is True


def test_room_conflict_with_class_session(db_session, campus, robotics_class):
    result = check_availability(db_session, _request(campus))

    assert result.available is False
    assert [reason.type for reason in result.reasons] == ["room_conflict"]
    reason = result.reasons[0]
    assert reason.message == "Room Studio is not available - class ROB1 Class at 10:00-11:00"
    assert reason.details.conflict_type == "class"
    assert reason.details.conflict_time == "10:00-11:00"


def test_teacher_conflict_with_trial_in_another_branch(db_session, campus):
    add_trial(
        db_session,
        trial_id="trial-north",
        student_name="Leo",
        scheduled_date=MONDAY,
        start_time="10:00",
        end_time="11:00",
        branch_id=campus.north.id,
        room_id=campus.hall.id,
        teacher_id=campus.ann.id,
    )

    result = check_availability(db_session, _request(campus, room_id=campus.lab.id, teacher_id=campus.ann.id))

    assert result.available is False
    assert [reason.type for reason in result.reasons] == ["teacher_conflict"]
    assert result.reasons[0].message == "Teacher Ann is not available - trial session for Leo at 10:00-11:00"
    assert result.reasons[0].details.student_names == ["Leo"]


def test_editing_a_class_does_not_conflict_with_itself(db_session, campus, robotics_class):
    request = _request(
        campus,
        teacher_id=campus.ann.id,
        exclude_id=robotics_class.id,
        exclude_type="class",
    )
    assert check_availability(db_session, request).available is True


def test_allow_conflicts_turns_conflicts_into_warnings(db_session, campus, robotics_class):
    result = check_availability(db_session, _request(campus, teacher_id=campus.ann.id, allow_conflicts=True))

    assert result.available is True
    assert result.reasons == []
    assert sorted(warning.type for warning in result.warnings) == ["room_conflict", "teacher_conflict"]


def test_holiday_blocks_even_when_conflicts_are_allowed(db_session, campus, robotics_class):
    add_holiday(db_session, name="Founders Day", on=MONDAY + timedelta(days=1))

    result = check_availability(
        db_session,
        _request(campus, date=MONDAY + timedelta(days=1), allow_conflicts=True),
    )

    assert result.available is False
    assert result.reasons[0].type == "holiday"
    assert result.reasons[0].message == "Selected date is a holiday (Founders Day)"
    assert result.reasons[0].details.holiday_name == "Founders Day"


def test_makeup_students_from_the_same_session_can_share_a_slot(db_session, campus, robotics_class):
    for index, name in enumerate(["Mia", "Noah"], start=1):
        add_makeup(
            db_session,
            makeup_id=f"makeup-{index}",
            student_id=f"student-{index}",
            student_name=name,
            original_schedule_id="class-rob1-s1",
            original_class_id=robotics_class.id,
            makeup_date=MONDAY,
            start_time="13:00",
            end_time="14:00",
            branch_id=campus.main.id,
            room_id=campus.lab.id,
            teacher_id=campus.ben.id,
        )
    base = {"start_time": "13:00", "end_time": "14:00", "room_id": campus.lab.id}

    blocked = check_availability(db_session, _request(campus, teacher_id=None, **base))
    assert blocked.available is False
    assert blocked.reasons[0].message == (
        "Room Lab is not available - makeup classes for 2 students (Mia, Noah) at 13:00-14:00"
    )
    assert blocked.reasons[0].details.count == 2

    editing = _request(campus, exclude_id="makeup-1", exclude_type="makeup", **base)
    assert check_availability(db_session, editing).available is True


def test_is_time_slot_available_matches_check(db_session, campus, robotics_class):
    assert is_time_slot_available(db_session, _request(campus)) is False
    assert is_time_slot_available(db_session, _request(campus, room_id=campus.lab.id)) is True


def test_data_failure_propagates_instead_of_reporting_free(db_session, campus, monkeypatch):
    monkeypatch.setattr("app.services.commitments.get_class_sessions_in_range", _raise_unavailable)

    with pytest.raises(DataUnavailableError, match="Unable to load class sessions"):
        check_availability(db_session, _request(campus))


def test_day_conflicts_lists_busy_slots(db_session, campus, robotics_class):
    add_trial(
        db_session,
        trial_id="trial-1",
        student_name="Leo",
        scheduled_date=MONDAY,
        start_time="08:30",
        end_time="09:30",
        branch_id=campus.main.id,
        room_id=campus.lab.id,
        teacher_id=campus.ben.id,
    )

    day = get_day_conflicts(db_session, campus.main.id, MONDAY)

    assert day.is_holiday is False
    assert [(slot.start_time, slot.type) for slot in day.busy_slots] == [("08:30", "trial"), ("10:00", "class")]
    class_slot = day.busy_slots[1]
    assert class_slot.room_name == "Studio"
    assert class_slot.teacher_name == "Ann"
    assert class_slot.session_number == 1
    assert class_slot.total_sessions == 2
    assert day.busy_slots[0].student_count == 1


def test_check_route(client, campus, robotics_class):
    response = client.post(
        "/api/availability/check",
        json={
            "date": MONDAY.isoformat(),
            "start_time": "10:30",
            "end_time": "11:30",
            "branch_id": campus.main.id,
            "room_id": campus.studio.id,
        },
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["available"] is False
    assert payload["reasons"][0]["type"] == "room_conflict"

    free = client.post(
        "/api/availability/is-free",
        json={
            "date": MONDAY.isoformat(),
            "start_time": "12:00",
            "end_time": "13:00",
            "branch_id": campus.main.id,
            "room_id": campus.studio.id,
        },
    )
    assert free.status_code == 200
    assert free.json() == {"available": True}


def test_check_route_validates_times(client, campus):
    response = client.post(
        "/api/availability/check",
        json={
            "date": MONDAY.isoformat(),
            "start_time": "11:00",
            "end_time": "10:00",
            "branch_id": campus.main.id,
        },
    )
    assert response.status_code == 422

    malformed = client.post(
        "/api/availability/check",
        json={
            "date": MONDAY.isoformat(),
            "start_time": "9:00",
            "end_time": "10:00",
            "branch_id": campus.main.id,
        },
    )
    assert malformed.status_code == 422


def test_check_route_reports_data_failure_as_503(client, campus, monkeypatch):
    monkeypatch.setattr("app.services.commitments.get_class_sessions_in_range", _raise_unavailable)

    response = client.post(
        "/api/availability/check",
        json={
            "date": MONDAY.isoformat(),
            "start_time": "10:00",
            "end_time": "11:00",
            "branch_id": campus.main.id,
            "teacher_id": campus.ann.id,
        },
    )
    assert response.status_code == 503
    assert response.json()["message"] == "Unable to load class sessions"


def test_day_route(client, campus, robotics_class):
    response = client.get("/api/availability/day", params={"branch_id": campus.main.id, "date": MONDAY.isoformat()})
    assert response.status_code == 200
    assert response.json()["busy_slots"][0]["name"] == "ROB1 Class"


def test_unreadable_record_for_another_teacher_does_not_block_checks(db_session, campus):
    add_trial(
        db_session,
        trial_id="trial-broken",
        student_name="Leo",
        scheduled_date=MONDAY,
        start_time="25:00",
        end_time="26:00",
        branch_id="branch-far-away",
        room_id="room-far-away",
        teacher_id="teacher-someone-else",
    )

    result = check_availability(db_session, _request(campus, teacher_id=campus.ann.id))
    assert result.available is True

    with pytest.raises(DataUnavailableError):
        check_availability(db_session, _request(campus, teacher_id="teacher-someone-else"))

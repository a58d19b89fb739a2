from datetime import date

import pytest
from conftest import MONDAY, add_holiday

from app.core.config import Settings
from app.core.exceptions import DataUnavailableError, SchedulingValidationError
from app.schemas.schedule import ScheduleProjectionInput
from app.services.projection import generate_session_dates, project_end_date, sunday_based_weekday


def _projection(campus, **overrides) -> ScheduleProjectionInput:
    values = {
        "start_date": MONDAY,
        "days_of_week": [1, 3, 5],
        "total_sessions": 10,
        "branch_id": campus.main.id,
    }
    values.update(overrides)
    return ScheduleProjectionInput(**values)


def test_sunday_based_weekday():
    assert sunday_based_weekday(date(2025, 1, 5)) == 0
    assert sunday_based_weekday(MONDAY) == 1
    assert sunday_based_weekday(date(2025, 1, 11)) == 6


def test_generate_session_dates_counts_the_start_date():
    sessions, skipped = generate_session_dates(MONDAY, [1], 2, lambda _: False, 100)
    assert sessions == [MONDAY, date(2025, 1, 13)]
    assert skipped == []


def test_generate_session_dates_validates_input():
    with pytest.raises(SchedulingValidationError, match="at least one day"):
        generate_session_dates(MONDAY, [], 3, lambda _: False, 100)
    with pytest.raises(SchedulingValidationError, match="between 0 and 6"):
        generate_session_dates(MONDAY, [7], 3, lambda _: False, 100)
    with pytest.raises(SchedulingValidationError, match="total_sessions"):
        generate_session_dates(MONDAY, [1], 0, lambda _: False, 100)


def test_generate_session_dates_stops_at_the_day_limit():
    with pytest.raises(SchedulingValidationError, match="Unable to place"):
        generate_session_dates(MONDAY, [1], 3, lambda _: True, 60)


def test_project_end_date_without_holidays(db_session, campus):
    result = project_end_date(db_session, _projection(campus))

    assert result.end_date == date(2025, 1, 27)
    assert len(result.session_dates) == 10
    assert result.skipped_holidays == []
    assert result.holiday_aware is True
    assert result.degraded is False


def test_project_end_date_skips_branch_holidays(db_session, campus):
    add_holiday(db_session, name="Campus Day", on=date(2025, 1, 15), branches=[campus.main.id])
    add_holiday(db_session, name="Other Campus Day", on=date(2025, 1, 17), branches=[campus.north.id])

    result = project_end_date(db_session, _projection(campus))

    assert result.end_date == date(2025, 1, 29)
    assert result.skipped_holidays == [date(2025, 1, 15)]
    assert date(2025, 1, 15) not in result.session_dates


def test_project_end_date_degrades_when_holidays_are_unavailable(db_session, campus, monkeypatch):
    add_holiday(db_session, name="Campus Day", on=date(2025, 1, 15), branches=[campus.main.id])

    def _raise(*args, **kwargs):
        raise DataUnavailableError("holidays")

    monkeypatch.setattr("app.services.projection.get_holidays_for_branch", _raise)

    result = project_end_date(db_session, _projection(campus))

    assert result.end_date == date(2025, 1, 27)
    assert result.degraded is True
    assert result.holiday_aware is False
    assert result.warnings == [
        "Holiday data was unavailable from 2025-01-06; "
        "dates from then on ignore holidays and may need manual correction"
    ]


def test_project_end_date_keeps_holidays_fetched_before_a_failure(db_session, campus, monkeypatch):
    add_holiday(db_session, name="Campus Day", on=date(2025, 1, 8), branches=[campus.main.id])
    from app.services import projection

    real_lookup = projection.get_holidays_for_branch
    calls = []

    def _flaky(db, branch_id, start_date, end_date):
        calls.append(start_date)
        if len(calls) > 1:
            raise DataUnavailableError("holidays")
        return real_lookup(db, branch_id, start_date, end_date)

    monkeypatch.setattr("app.services.projection.get_holidays_for_branch", _flaky)
    monkeypatch.setattr(
        "app.services.projection.get_settings",
        lambda: Settings(projection_holiday_window_days=7),
    )

    result = project_end_date(db_session, _projection(campus))

    assert result.skipped_holidays == [date(2025, 1, 8)]
    assert result.end_date == date(2025, 1, 29)
    assert result.degraded is True
    assert "2025-01-13" in result.warnings[0]


def test_projection_input_validation():
    with pytest.raises(ValueError):
        ScheduleProjectionInput(start_date=MONDAY, days_of_week=[], total_sessions=3, branch_id="b")
    with pytest.raises(ValueError):
        ScheduleProjectionInput(start_date=MONDAY, days_of_week=[1, 9], total_sessions=3, branch_id="b")
    normalized = ScheduleProjectionInput(start_date=MONDAY, days_of_week=[5, 1, 5], total_sessions=3, branch_id="b")
    assert normalized.days_of_week == [1, 5]


def test_project_end_date_route(client, db_session, campus):
    add_holiday(db_session, name="Campus Day", on=date(2025, 1, 15), branches=[campus.main.id])

    response = client.post(
        "/api/schedules/project-end-date",
        json={
            "start_date": "2025-01-06",
            "days_of_week": [1, 3, 5],
            "total_sessions": 10,
            "branch_id": campus.main.id,
        },
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["end_date"] == "2025-01-29"
    assert payload["skipped_holidays"] == ["2025-01-15"]

    empty = client.post(
        "/api/schedules/project-end-date",
        json={"start_date": "2025-01-06", "days_of_week": [], "total_sessions": 10, "branch_id": campus.main.id},
    )
    assert empty.status_code == 422

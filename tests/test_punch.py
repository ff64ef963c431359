from datetime import date, datetime, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from attendance_api.core.exceptions import AlreadyComplete, PunchConflict, StorageError
from attendance_api.db.models import Attendance
from attendance_api.services.punch import PunchAction, SqlAttendanceStore, resolve_punch

TODAY = date(2026, 3, 2)
MORNING = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
EVENING = datetime(2026, 3, 2, 17, 0, tzinfo=timezone.utc)


class StaleReadStore(SqlAttendanceStore):
    """Always reports NoRecord, as a request that read before a concurrent write would."""

    def find(self, user_id, day):
        return None


class LosingCloseStore(SqlAttendanceStore):
    def close(self, record, now):
        return False


class BrokenSession:
    def scalar(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))


@pytest.fixture()
def employee(make_company, make_user):
    return make_user(make_company())


def test_punch_in_then_out_then_complete(db, employee):
    store = SqlAttendanceStore(db)

    first = resolve_punch(store, employee.id, TODAY, MORNING)
    db.commit()
    assert first.action is PunchAction.PUNCH_IN
    assert first.record.status == "present"
    assert first.record.punch_out_time is None

    second = resolve_punch(store, employee.id, TODAY, EVENING)
    db.commit()
    assert second.action is PunchAction.PUNCH_OUT
    assert second.at == EVENING

    with pytest.raises(AlreadyComplete):
        resolve_punch(store, employee.id, TODAY, EVENING)

    record = db.scalar(select(Attendance).where(Attendance.user_id == employee.id))
    assert record.punch_in_time.replace(tzinfo=None) == MORNING.replace(tzinfo=None)
    assert record.punch_out_time.replace(tzinfo=None) == EVENING.replace(tzinfo=None)


def test_two_calls_never_punch_in_twice(db, employee):
    store = SqlAttendanceStore(db)
    actions = [resolve_punch(store, employee.id, TODAY, MORNING).action for _ in range(2)]
    assert actions == [PunchAction.PUNCH_IN, PunchAction.PUNCH_OUT]


def test_new_day_starts_a_new_record(db, employee):
    store = SqlAttendanceStore(db)
    resolve_punch(store, employee.id, TODAY, MORNING)
    resolve_punch(store, employee.id, TODAY, EVENING)

    next_day = resolve_punch(store, employee.id, date(2026, 3, 3), MORNING)

    assert next_day.action is PunchAction.PUNCH_IN


def test_concurrent_first_punches_create_one_record(session_factory, employee):
    winner_session = session_factory()
    loser_session = session_factory()
    try:
        winner = resolve_punch(StaleReadStore(winner_session), employee.id, TODAY, MORNING)
        winner_session.commit()

        with pytest.raises(PunchConflict) as exc_info:
            resolve_punch(StaleReadStore(loser_session), employee.id, TODAY, MORNING)
    finally:
        winner_session.close()
        loser_session.close()

    assert winner.action is PunchAction.PUNCH_IN
    assert isinstance(exc_info.value, AlreadyComplete)
    assert exc_info.value.status_code == 409
    with session_factory() as check:
        assert check.scalar(select(func.count(Attendance.id)).where(Attendance.user_id == employee.id)) == 1


def test_lost_punch_out_race_is_a_conflict(db, employee):
    resolve_punch(SqlAttendanceStore(db), employee.id, TODAY, MORNING)
    db.commit()

    with pytest.raises(PunchConflict):
        resolve_punch(LosingCloseStore(db), employee.id, TODAY, EVENING)


def test_storage_failures_are_not_business_rejections():
    with pytest.raises(StorageError) as exc_info:
        resolve_punch(SqlAttendanceStore(BrokenSession()), 1, TODAY, MORNING)

    assert not isinstance(exc_info.value, AlreadyComplete)
    assert exc_info.value.status_code == 500
    assert "disk I/O error" in exc_info.value.error

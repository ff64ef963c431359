from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from attendance_api.core.exceptions import AlreadyComplete, PunchConflict, StorageError
from attendance_api.db.models import Attendance

logger = logging.getLogger("attendance.punch")


class PunchAction(str, enum.Enum):
    PUNCH_IN = "punch_in"
    PUNCH_OUT = "punch_out"


@dataclass(frozen=True)
class PunchOutcome:
    action: PunchAction
    record: Attendance
    at: datetime


class AttendanceStore(Protocol):
    def find(self, user_id: int, day: date) -> Attendance | None: ...

    def create(self, user_id: int, day: date, now: datetime) -> Attendance: ...

    def close(self, record: Attendance, now: datetime) -> bool: ...


class SqlAttendanceStore:
    """Attendance persistence backed by the ``UNIQUE(user_id, date)`` constraint.

    ``create`` flushes immediately so a losing concurrent insert surfaces as
    :class:`PunchConflict`. ``close`` is a conditional update that only
    touches rows whose punch-out is still unset. Committing is left to the
    caller.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def find(self, user_id: int, day: date) -> Attendance | None:
        try:
            return self.db.scalar(select(Attendance).where(Attendance.user_id == user_id, Attendance.date == day))
        except SQLAlchemyError as exc:
            raise StorageError(error=str(exc)) from exc

    def create(self, user_id: int, day: date, now: datetime) -> Attendance:
        record = Attendance(user_id=user_id, date=day, punch_in_time=now, status="present")
        self.db.add(record)
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Concurrent punch-in for user %s on %s lost the race", user_id, day)
            raise PunchConflict() from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(error=str(exc)) from exc
        return record

    def close(self, record: Attendance, now: datetime) -> bool:
        try:
            result = self.db.execute(
                update(Attendance)
                .where(Attendance.id == record.id, Attendance.punch_out_time.is_(None))
                .values(punch_out_time=now, status="present")
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(error=str(exc)) from exc
        return result.rowcount == 1


def resolve_punch(store: AttendanceStore, user_id: int, today: date, now: datetime) -> PunchOutcome:
    """Advance today's record for ``user_id`` one step: NoRecord -> PunchedIn -> PunchedOut."""
    record = store.find(user_id, today)
    if record is None:
        created = store.create(user_id, today, now)
        logger.info("User %s punched in on %s", user_id, today)
        return PunchOutcome(PunchAction.PUNCH_IN, created, now)

    if record.punch_out_time is not None:
        raise AlreadyComplete()

    if not store.close(record, now):
        logger.warning("Concurrent punch-out for user %s on %s lost the race", user_id, today)
        raise PunchConflict()
    logger.info("User %s punched out on %s", user_id, today)
    return PunchOutcome(PunchAction.PUNCH_OUT, record, now)

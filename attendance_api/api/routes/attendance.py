from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from attendance_api.api.deps import db_session, get_clock, get_current_user, get_face_matcher
from attendance_api.core.clock import format_timestamp, tenant_now, tenant_today
from attendance_api.core.exceptions import AttendanceError, NotFoundError
from attendance_api.core.policy import ADMINS, ANYONE_RELATED, authorize
from attendance_api.db.models import User
from attendance_api.schemas.attendance import (
    AttendanceResponse,
    MarkAttendanceRequest,
    RawAttendanceResponse,
)
from attendance_api.schemas.common import Envelope
from attendance_api.schemas.user import UserResponse
from attendance_api.services.attendance import AttendanceMarker
from attendance_api.services.matcher import FaceMatcher
from attendance_api.services.punch import PunchAction
from attendance_api.services.reports import list_user_records, raw_attendance, user_attendance_report

router = APIRouter(prefix="/attendance", tags=["attendance"])
logger = logging.getLogger("attendance.api")


def _company_zone(user: User) -> str | None:
    return user.company.timezone if user.company is not None else None


@router.post("/mark")
def mark_attendance(
    payload: MarkAttendanceRequest,
    user: User = Depends(get_current_user),
    db: Session = db_session(),
    matcher: FaceMatcher = Depends(get_face_matcher),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    marker = AttendanceMarker(db, matcher)
    try:
        result = marker.mark(user, payload.face_descriptor, clock())
    except AttendanceError:
        raise
    except Exception as exc:
        logger.exception("Attendance marking failed")
        raise AttendanceError("Failed to process attendance", error=str(exc)) from exc

    action = result.outcome.action
    matched = result.user
    return {
        "success": True,
        "message": (
            "Attendance marked successfully" if action is PunchAction.PUNCH_IN else "Attendance updated successfully"
        ),
        "data": {
            "user": {"id": matched.id, "name": matched.name, "email": matched.email},
            "action": action.value,
            f"{action.value}_time": format_timestamp(tenant_now(result.outcome.at, _company_zone(matched))),
            "confidence": result.match.confidence,
            "distance": result.match.rounded_distance,
        },
    }


@router.get("/user", response_model=Envelope[list[AttendanceResponse]])
def my_attendance(limit: int = 200, user: User = Depends(get_current_user), db: Session = db_session()):
    rows = list_user_records(db, user.id, limit=limit)
    return Envelope(
        message="Attendance records retrieved successfully",
        data=[AttendanceResponse.model_validate(row) for row in rows],
    )


@router.get("/user/{user_id}")
def user_attendance(
    user_id: int,
    month: int | None = None,
    year: int | None = None,
    user: User = Depends(get_current_user),
    db: Session = db_session(),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    target = db.get(User, user_id)
    if target is None:
        raise NotFoundError("User not found")
    authorize(user, ANYONE_RELATED, target=target, message="Unauthorized to view this user's attendance")

    zone = _company_zone(target)
    today = tenant_today(clock(), zone)
    report = user_attendance_report(db, target.id, year or today.year, month or today.month, today, zone)
    return {
        "success": True,
        "message": "Attendance records retrieved successfully",
        "data": {"user": UserResponse.model_validate(target).model_dump(mode="json"), **report},
    }


@router.get("/raw", response_model=Envelope[list[RawAttendanceResponse]])
def raw_attendance_data(
    filter: str = "today",
    start_date: date | None = None,
    end_date: date | None = None,
    user: User = Depends(get_current_user),
    db: Session = db_session(),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    authorize(user, ADMINS, message="Unauthorized to view attendance data")
    today = tenant_today(clock(), _company_zone(user))
    rows = raw_attendance(db, user.company_id, today, filter, start_date, end_date)
    return Envelope(
        message="Raw attendance data retrieved successfully",
        data=[RawAttendanceResponse.model_validate(row) for row in rows],
    )

from __future__ import annotations

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from attendance_api.api.deps import db_session, get_clock, get_current_user
from attendance_api.core.clock import tenant_today
from attendance_api.core.policy import ADMINS, authorize
from attendance_api.db.models import User
from attendance_api.services.reports import dashboard_stats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats")
def stats(
    user: User = Depends(get_current_user),
    db: Session = db_session(),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    authorize(user, ADMINS, message="Unauthorized to view dashboard statistics")
    zone = user.company.timezone if user.company is not None else None
    return {
        "success": True,
        "message": "Dashboard statistics retrieved successfully",
        "data": dashboard_stats(db, user.company_id, tenant_today(clock(), zone), zone),
    }

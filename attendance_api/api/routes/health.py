from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from attendance_api.api.deps import db_session
from attendance_api.core.clock import utc_now

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = db_session()) -> dict:
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        database = "unavailable"
    return {
        "ok": database == "ok",
        "service": "face-punch-attendance",
        "database": database,
        "timestamp": utc_now().isoformat(),
    }

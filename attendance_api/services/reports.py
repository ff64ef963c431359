from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session, selectinload

from attendance_api.core.clock import format_clock, tenant_now
from attendance_api.core.exceptions import BusinessRuleError
from attendance_api.db.models import Attendance, User

RAW_FILTERS = ("today", "yesterday", "custom")


def _hours_worked(punch_in: datetime | None, punch_out: datetime | None) -> float | None:
    if punch_in is None or punch_out is None:
        return None
    return round((punch_out - punch_in).total_seconds() / 3600, 2)


def _local(value: datetime | None, zone: str | None) -> datetime | None:
    return tenant_now(value, zone) if value is not None else None


def _day_entry(day: date, record: Attendance | None, zone: str | None = None) -> dict:
    if record is None:
        return {
            "date": day.isoformat(),
            "status": "absent",
            "punch_in_time": None,
            "punch_out_time": None,
            "hours_worked": None,
        }
    punch_in = _local(record.punch_in_time, zone)
    punch_out = _local(record.punch_out_time, zone)
    return {
        "date": day.isoformat(),
        "status": record.status,
        "punch_in_time": punch_in.strftime("%H:%M") if punch_in else None,
        "punch_out_time": punch_out.strftime("%H:%M") if punch_out else None,
        "hours_worked": _hours_worked(record.punch_in_time, record.punch_out_time),
    }


def _records_between(db: Session, user_id: int, start: date, end: date) -> dict[date, Attendance]:
    rows = db.scalars(
        select(Attendance).where(
            Attendance.user_id == user_id,
            Attendance.date >= start,
            Attendance.date <= end,
        )
    ).all()
    return {row.date: row for row in rows}


def list_user_records(db: Session, user_id: int, limit: int = 200) -> list[Attendance]:
    return db.scalars(
        select(Attendance)
        .where(Attendance.user_id == user_id)
        .order_by(desc(Attendance.date))
        .limit(max(1, min(1000, limit)))
    ).all()


def user_attendance_report(
    db: Session,
    user_id: int,
    year: int,
    month: int,
    today: date,
    zone: str | None = None,
) -> dict:
    """Monthly weekday sheet, the trailing week and a per-month tally for the year.

    Weekdays without a record count as absent, but only up to ``today``.
    Punch times are shown on the clock of ``zone``.
    """
    if not 1 <= month <= 12:
        raise BusinessRuleError("Month must be between 1 and 12")

    month_start = date(year, month, 1)
    month_end = date(year, month, calendar.monthrange(year, month)[1])
    records = _records_between(db, user_id, month_start, month_end)
    monthly = []
    day = month_start
    while day <= min(month_end, today):
        if day.weekday() < 5 or day in records:
            monthly.append(_day_entry(day, records.get(day), zone))
        day += timedelta(days=1)

    week_start = today - timedelta(days=6)
    week_records = _records_between(db, user_id, week_start, today)
    weekly = []
    for offset in range(7):
        day = week_start + timedelta(days=offset)
        weekly.append(_day_entry(day, week_records.get(day), zone))

    year_rows = db.execute(
        select(Attendance.date, Attendance.status).where(
            Attendance.user_id == user_id,
            Attendance.date >= date(year, 1, 1),
            Attendance.date <= date(year, 12, 31),
        )
    ).all()
    yearly = [{"month": number, "present": 0, "late": 0, "leave": 0, "absent": 0} for number in range(1, 13)]
    for row_date, status in year_rows:
        bucket = yearly[row_date.month - 1]
        bucket[status] = bucket.get(status, 0) + 1

    return {"monthly": monthly, "weekly": weekly, "yearly": yearly}


def dashboard_stats(db: Session, company_id: int | None, today: date, zone: str | None = None) -> dict:
    total_employees = db.scalar(select(func.count(User.id)).where(User.company_id == company_id)) or 0

    week_start = today - timedelta(days=6)
    counts = dict(
        db.execute(
            select(Attendance.date, func.count(Attendance.id))
            .join(User, User.id == Attendance.user_id)
            .where(
                User.company_id == company_id,
                Attendance.status == "present",
                Attendance.date >= week_start,
                Attendance.date <= today,
            )
            .group_by(Attendance.date)
        ).all()
    )

    series = []
    for offset in range(7):
        day = week_start + timedelta(days=offset)
        present = counts.get(day, 0)
        series.append(
            {
                "name": day.strftime("%a"),
                "present": present,
                "absent": total_employees - present,
                "date": day.isoformat(),
            }
        )

    today_rows = db.scalars(
        select(Attendance)
        .join(User, User.id == Attendance.user_id)
        .where(User.company_id == company_id, Attendance.date == today)
        .options(selectinload(Attendance.user).selectinload(User.shift))
        .order_by(Attendance.punch_in_time)
    ).all()
    attendance_list = [
        {
            "id": row.id,
            "name": row.user.name,
            "shift": row.user.shift.shift_name if row.user.shift else "N/A",
            "punchIn": format_clock(_local(row.punch_in_time, zone)),
            "punchOut": format_clock(_local(row.punch_out_time, zone)),
            "status": row.status,
        }
        for row in today_rows
    ]

    today_present = counts.get(today, 0)
    return {
        "stats": {
            "totalEmployees": total_employees,
            "todayPresent": today_present,
            "todayAbsent": total_employees - today_present,
        },
        "attendanceData": series,
        "attendanceList": attendance_list,
    }


def raw_attendance(
    db: Session,
    company_id: int | None,
    today: date,
    filter_name: str = "today",
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[Attendance]:
    if filter_name not in RAW_FILTERS:
        raise BusinessRuleError(f"Unknown filter '{filter_name}'")

    query = (
        select(Attendance)
        .join(User, User.id == Attendance.user_id)
        .where(User.company_id == company_id)
        .options(selectinload(Attendance.user).selectinload(User.shift))
        .order_by(desc(Attendance.date), Attendance.id)
    )
    if filter_name == "today":
        query = query.where(Attendance.date == today)
    elif filter_name == "yesterday":
        query = query.where(Attendance.date == today - timedelta(days=1))
    elif start_date and end_date:
        query = query.where(Attendance.date >= start_date, Attendance.date <= end_date)
    return db.scalars(query).all()

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from attendance_api.api.deps import db_session, get_current_user
from attendance_api.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from attendance_api.core.policy import ADMINS, authorize
from attendance_api.db.models import Shift, User
from attendance_api.schemas.common import Envelope
from attendance_api.schemas.shift import ShiftCreate, ShiftResponse, ShiftUpdate

router = APIRouter(prefix="/shifts", tags=["shifts"])


def _shift_or_404(db: Session, shift_id: int, company_id: int | None) -> Shift:
    shift = db.get(Shift, shift_id)
    if shift is None or shift.company_id != company_id:
        raise NotFoundError("Shift not found")
    return shift


def _ensure_unique_name(db: Session, company_id: int | None, name: str, exclude_id: int | None = None) -> None:
    query = select(Shift).where(Shift.company_id == company_id, Shift.shift_name == name)
    if exclude_id is not None:
        query = query.where(Shift.id != exclude_id)
    if db.scalar(query) is not None:
        raise ConflictError("The shift name has already been taken")


@router.get("", response_model=Envelope[list[ShiftResponse]])
def list_shifts(user: User = Depends(get_current_user), db: Session = db_session()):
    rows = db.scalars(select(Shift).where(Shift.company_id == user.company_id).order_by(Shift.id)).all()
    return Envelope(data=[ShiftResponse.model_validate(row) for row in rows])


@router.post("", response_model=Envelope[ShiftResponse], status_code=201)
def create_shift(payload: ShiftCreate, user: User = Depends(get_current_user), db: Session = db_session()):
    authorize(user, ADMINS, message="Unauthorized to manage shifts")
    _ensure_unique_name(db, user.company_id, payload.shift_name)
    shift = Shift(company_id=user.company_id, **payload.model_dump())
    db.add(shift)
    db.commit()
    db.refresh(shift)
    return Envelope(message="Shift created successfully", data=ShiftResponse.model_validate(shift))


@router.get("/{shift_id}", response_model=Envelope[ShiftResponse])
def show_shift(shift_id: int, user: User = Depends(get_current_user), db: Session = db_session()):
    return Envelope(data=ShiftResponse.model_validate(_shift_or_404(db, shift_id, user.company_id)))


@router.put("/{shift_id}", response_model=Envelope[ShiftResponse])
def update_shift(
    shift_id: int,
    payload: ShiftUpdate,
    user: User = Depends(get_current_user),
    db: Session = db_session(),
):
    authorize(user, ADMINS, message="Unauthorized to manage shifts")
    shift = _shift_or_404(db, shift_id, user.company_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "shift_name" in changes:
        _ensure_unique_name(db, user.company_id, changes["shift_name"], exclude_id=shift.id)

    punch_in = changes.get("punch_in_time", shift.punch_in_time)
    punch_out = changes.get("punch_out_time", shift.punch_out_time)
    if punch_out <= punch_in:
        raise BusinessRuleError("punch_out_time must be after punch_in_time")

    for field, value in changes.items():
        setattr(shift, field, value)
    db.commit()
    db.refresh(shift)
    return Envelope(message="Shift updated successfully", data=ShiftResponse.model_validate(shift))


@router.delete("/{shift_id}", response_model=Envelope[None])
def delete_shift(shift_id: int, user: User = Depends(get_current_user), db: Session = db_session()):
    authorize(user, ADMINS, message="Unauthorized to manage shifts")
    shift = _shift_or_404(db, shift_id, user.company_id)
    assigned = db.scalar(select(func.count(User.id)).where(User.shift_id == shift.id))
    if assigned:
        raise BusinessRuleError("Cannot delete shift because users are assigned to it")
    db.delete(shift)
    db.commit()
    return Envelope(message="Shift deleted successfully")

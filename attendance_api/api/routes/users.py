from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from attendance_api.api.deps import db_session, get_current_user
from attendance_api.core.exceptions import ConflictError, NotFoundError, PermissionDenied
from attendance_api.core.policy import ADMINS, ANYONE_RELATED, Capability, authorize
from attendance_api.core.security import hash_password
from attendance_api.db.models import ROLE_SUPERADMIN, Shift, User
from attendance_api.schemas.common import Envelope
from attendance_api.schemas.user import UserCreate, UserResponse

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger("attendance.users")


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("", response_model=Envelope[list[UserResponse]])
def list_users(user: User = Depends(get_current_user), db: Session = db_session()):
    granted = authorize(user, ADMINS)
    query = select(User).order_by(User.id)
    if granted is not Capability.SUPERADMIN:
        query = query.where(User.company_id == user.company_id)
    rows = db.scalars(query).all()
    return Envelope(data=[UserResponse.model_validate(row) for row in rows])


@router.post("", response_model=Envelope[UserResponse], status_code=201)
def create_user(payload: UserCreate, user: User = Depends(get_current_user), db: Session = db_session()):
    authorize(user, ADMINS, message="Unauthorized to create employees")
    if payload.role == ROLE_SUPERADMIN and not user.is_superadmin:
        raise PermissionDenied("Only a superadmin can create another superadmin")
    if db.scalar(select(User).where(User.email == payload.email)) is not None:
        raise ConflictError("The email has already been taken")
    if payload.shift_id is not None:
        shift = db.get(Shift, payload.shift_id)
        if shift is None or shift.company_id != user.company_id:
            raise NotFoundError("Shift not found")

    row = User(
        **payload.model_dump(exclude={"password"}),
        password_hash=hash_password(payload.password),
        company_id=user.company_id,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("User %s created employee %s in company %s", user.id, row.id, row.company_id)
    return Envelope(message="Employee created successfully", data=UserResponse.model_validate(row))


@router.get("/{user_id}", response_model=Envelope[UserResponse])
def show_user(user_id: int, user: User = Depends(get_current_user), db: Session = db_session()):
    target = get_user_or_404(db, user_id)
    authorize(user, ANYONE_RELATED, target=target, message="Unauthorized: Access denied to this resource")
    return Envelope(data=UserResponse.model_validate(target))


@router.delete("/{user_id}", response_model=Envelope[None])
def delete_user(user_id: int, user: User = Depends(get_current_user), db: Session = db_session()):
    target = get_user_or_404(db, user_id)
    authorize(user, ADMINS, target=target, message="Unauthorized: Access denied to this resource")
    if target.id == user.id:
        raise PermissionDenied("You cannot delete your own account")
    db.delete(target)
    db.commit()
    logger.info("User %s deleted user %s", user.id, user_id)
    return Envelope(message="User deleted successfully")

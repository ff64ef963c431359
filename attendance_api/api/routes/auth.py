from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from attendance_api.api.deps import db_session, get_current_user
from attendance_api.core.security import create_access_token, verify_password
from attendance_api.db.models import User
from attendance_api.schemas.auth import LoginRequest, TokenResponse
from attendance_api.schemas.common import Envelope
from attendance_api.schemas.user import UserSummary

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("attendance.auth")


@router.post("/login", response_model=Envelope[TokenResponse])
def login(payload: LoginRequest, db: Session = db_session()):
    user = db.scalar(select(User).where(User.email == payload.email))
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials.")

    # A fresh login revokes every token issued before it.
    user.token_version += 1
    db.commit()
    token = create_access_token(subject=str(user.id), role=user.role, token_version=user.token_version)
    logger.info("User %s logged in", user.id)
    return Envelope(
        message="Login successful",
        data=TokenResponse(user=UserSummary.model_validate(user), token=token),
    )


@router.post("/logout", response_model=Envelope[None])
def logout(user: User = Depends(get_current_user), db: Session = db_session()):
    user.token_version += 1
    db.commit()
    return Envelope(message="Logout successful")


@router.get("/me", response_model=Envelope[UserSummary])
def me(user: User = Depends(get_current_user)):
    return Envelope(data=UserSummary.model_validate(user))

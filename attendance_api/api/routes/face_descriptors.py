from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from attendance_api.api.deps import db_session, get_current_user
from attendance_api.core.exceptions import NotFoundError
from attendance_api.core.policy import ADMINS, authorize
from attendance_api.db.models import User
from attendance_api.schemas.common import Envelope
from attendance_api.schemas.descriptor import (
    FaceDescriptorCreate,
    FaceDescriptorResponse,
    FaceDescriptorSaved,
)
from attendance_api.services.descriptors import (
    decode_descriptor,
    delete_descriptor,
    get_descriptor,
    save_descriptor,
    validate_descriptor,
)

router = APIRouter(prefix="/face-descriptor", tags=["face-descriptors"])


def _target_user(db: Session, actor: User, user_id: int | None, action: str) -> User:
    if user_id is None or user_id == actor.id:
        return actor
    target = db.get(User, user_id)
    if target is None:
        raise NotFoundError("User not found")
    authorize(
        actor,
        ADMINS,
        target=target,
        message=f"Unauthorized to {action} face descriptor for another user",
    )
    return target


@router.post("", response_model=Envelope[FaceDescriptorSaved])
def store_descriptor(
    payload: FaceDescriptorCreate,
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = db_session(),
):
    target = _target_user(db, user, payload.user_id, "register")
    row, created = save_descriptor(db, target, validate_descriptor(payload.face_descriptor))
    if created:
        response.status_code = status.HTTP_201_CREATED
        message = "Face descriptor saved successfully"
    else:
        message = "Face descriptor updated successfully"
    return Envelope(message=message, data=FaceDescriptorSaved.model_validate(row))


@router.get("", response_model=Envelope[FaceDescriptorResponse])
def show_descriptor(
    user_id: int | None = None,
    user: User = Depends(get_current_user),
    db: Session = db_session(),
):
    target = _target_user(db, user, user_id, "access")
    row = get_descriptor(db, target.id)
    if row is None:
        raise NotFoundError("Face descriptor not found for user")
    return Envelope(
        data=FaceDescriptorResponse(
            id=row.id,
            user_id=row.user_id,
            company_id=row.company_id,
            face_descriptor=decode_descriptor(row),
            last_used_at=row.last_used_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
    )


@router.delete("", response_model=Envelope[None])
def remove_descriptor(
    user_id: int | None = None,
    user: User = Depends(get_current_user),
    db: Session = db_session(),
):
    target = _target_user(db, user, user_id, "delete")
    if not delete_descriptor(db, target.id):
        raise NotFoundError("Face descriptor not found for user")
    return Envelope(message="Face descriptor deleted successfully")

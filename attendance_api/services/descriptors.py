from __future__ import annotations

import logging
import math
from datetime import datetime
from numbers import Real
from typing import Any

import numpy as np
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from attendance_api.core.config import get_settings
from attendance_api.core.exceptions import InvalidDescriptor
from attendance_api.db.models import FaceDescriptor, User
from attendance_api.services.encryption import descriptor_crypto
from attendance_api.services.matcher import Candidate

logger = logging.getLogger("attendance.descriptors")


def validate_descriptor(values: Any, length: int | None = None) -> np.ndarray:
    """Check that ``values`` is exactly ``length`` finite numbers and return it as a vector."""
    expected = length or get_settings().descriptor_length
    message = f"Face descriptor must contain exactly {expected} numeric values"
    if isinstance(values, (str, bytes)) or not hasattr(values, "__len__"):
        raise InvalidDescriptor(message)
    if len(values) != expected:
        raise InvalidDescriptor(message)
    for value in values:
        if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
            raise InvalidDescriptor("All face descriptor values must be finite numbers")
    return np.asarray(values, dtype=np.float64)


def load_candidates(db: Session, company_id: int | None, *, cross_tenant: bool = False) -> list[Candidate]:
    """Snapshot every descriptor in the matching scope, ordered by descriptor id."""
    query = select(FaceDescriptor).order_by(FaceDescriptor.id)
    if not cross_tenant:
        query = query.where(FaceDescriptor.company_id == company_id)
    rows = db.scalars(query).all()
    return [Candidate(user_id=row.user_id, vector=descriptor_crypto.decrypt(row.descriptor_ciphertext)) for row in rows]


def get_descriptor(db: Session, user_id: int) -> FaceDescriptor | None:
    return db.scalar(select(FaceDescriptor).where(FaceDescriptor.user_id == user_id))


def decode_descriptor(row: FaceDescriptor) -> list[float]:
    return descriptor_crypto.decrypt(row.descriptor_ciphertext).tolist()


def save_descriptor(db: Session, user: User, vector: np.ndarray) -> tuple[FaceDescriptor, bool]:
    """Create or wholesale-replace the user's descriptor. Returns ``(row, created)``."""
    ciphertext = descriptor_crypto.encrypt(vector)
    row = get_descriptor(db, user.id)
    created = row is None
    if row is None:
        row = FaceDescriptor(user_id=user.id, company_id=user.company_id, descriptor_ciphertext=ciphertext)
        db.add(row)
    else:
        row.descriptor_ciphertext = ciphertext
        row.company_id = user.company_id
        row.last_used_at = None
    db.commit()
    db.refresh(row)
    logger.info("%s face descriptor for user %s", "Registered" if created else "Replaced", user.id)
    return row, created


def delete_descriptor(db: Session, user_id: int) -> bool:
    row = get_descriptor(db, user_id)
    if row is None:
        return False
    db.delete(row)
    db.commit()
    logger.info("Deleted face descriptor for user %s", user_id)
    return True


def mark_used(db: Session, user_id: int, when: datetime) -> None:
    db.execute(update(FaceDescriptor).where(FaceDescriptor.user_id == user_id).values(last_used_at=when))

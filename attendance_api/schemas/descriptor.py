from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, StrictFloat, field_validator

from attendance_api.core.exceptions import InvalidDescriptor
from attendance_api.services.descriptors import validate_descriptor


class DescriptorPayload(BaseModel):
    # Strict items refuse JSON booleans and numeric strings; ints still pass.
    face_descriptor: list[StrictFloat]

    @field_validator("face_descriptor")
    @classmethod
    def check_descriptor(cls, value: list[float]) -> list[float]:
        try:
            validate_descriptor(value)
        except InvalidDescriptor as exc:
            raise ValueError(exc.message) from exc
        return value


class FaceDescriptorCreate(DescriptorPayload):
    user_id: int | None = None


class FaceDescriptorSaved(BaseModel):
    id: int
    user_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class FaceDescriptorResponse(FaceDescriptorSaved):
    company_id: int | None = None
    face_descriptor: list[float]
    last_used_at: datetime | None = None

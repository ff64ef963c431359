from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=6)
    role: Literal["admin", "user", "superadmin", "employee"] = "employee"
    address: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=20)
    sex: Literal["Male", "Female", "Other"] | None = None
    age: int | None = Field(default=None, ge=18, le=100)
    dob: date | None = None
    position: str | None = Field(default=None, max_length=100)
    shift_id: int | None = None


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    role: str

    class Config:
        from_attributes = True


class UserResponse(UserSummary):
    address: str | None = None
    phone: str | None = None
    sex: str | None = None
    age: int | None = None
    dob: date | None = None
    position: str | None = None
    shift_id: int | None = None
    company_id: int | None = None
    created_at: datetime | None = None

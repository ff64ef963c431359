from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .user import EMAIL_PATTERN, UserSummary


class CompanyRegister(BaseModel):
    company_name: str = Field(min_length=1, max_length=255)
    company_email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    company_address: str | None = Field(default=None, max_length=500)
    company_phone: str | None = Field(default=None, max_length=20)
    timezone: str | None = Field(default=None, max_length=64)
    admin_name: str = Field(min_length=1, max_length=255)
    admin_email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    admin_password: str = Field(min_length=6)
    role: Literal["admin", "superadmin"]


class CompanyUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    address: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=20)
    logo: str | None = None
    status: Literal["active", "inactive"] | None = None
    timezone: str | None = Field(default=None, max_length=64)


class CompanyResponse(BaseModel):
    id: int
    name: str
    email: str
    address: str | None = None
    phone: str | None = None
    logo: str | None = None
    status: str
    timezone: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class CompanyRegistered(BaseModel):
    company: CompanyResponse
    admin_user: UserSummary

from __future__ import annotations

from pydantic import BaseModel, Field

from .user import UserSummary


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    user: UserSummary
    token: str
    token_type: str = "bearer"

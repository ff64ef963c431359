from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class ShiftCreate(BaseModel):
    shift_name: str = Field(min_length=1, max_length=255)
    punch_in_time: str = Field(pattern=CLOCK_PATTERN)
    punch_out_time: str = Field(pattern=CLOCK_PATTERN)
    status: Literal["active", "inactive"]

    @model_validator(mode="after")
    def check_order(self) -> "ShiftCreate":
        if self.punch_out_time <= self.punch_in_time:
            raise ValueError("punch_out_time must be after punch_in_time")
        return self


class ShiftUpdate(BaseModel):
    shift_name: str | None = Field(default=None, min_length=1, max_length=255)
    punch_in_time: str | None = Field(default=None, pattern=CLOCK_PATTERN)
    punch_out_time: str | None = Field(default=None, pattern=CLOCK_PATTERN)
    status: Literal["active", "inactive"] | None = None


class ShiftResponse(BaseModel):
    id: int
    company_id: int | None = None
    shift_name: str
    punch_in_time: str
    punch_out_time: str
    status: str

    class Config:
        from_attributes = True

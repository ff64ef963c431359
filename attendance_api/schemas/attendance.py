from __future__ import annotations

import datetime as dt

from pydantic import BaseModel

from .descriptor import DescriptorPayload
from .user import UserSummary


class MarkAttendanceRequest(DescriptorPayload):
    pass


class AttendanceResponse(BaseModel):
    id: int
    user_id: int
    date: dt.date
    punch_in_time: dt.datetime | None = None
    punch_out_time: dt.datetime | None = None
    status: str

    class Config:
        from_attributes = True


class RawAttendanceResponse(AttendanceResponse):
    user: UserSummary

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from attendance_api.core.clock import as_utc, tenant_now
from attendance_api.core.config import get_settings
from attendance_api.core.exceptions import NoEnrollment, NoMatch, StorageError
from attendance_api.db.models import User
from attendance_api.services.descriptors import load_candidates, mark_used, validate_descriptor
from attendance_api.services.matcher import FaceMatcher, MatchResult, MatchStatus
from attendance_api.services.punch import PunchOutcome, SqlAttendanceStore, resolve_punch

logger = logging.getLogger("attendance.marking")


@dataclass(frozen=True)
class MarkResult:
    user: User
    match: MatchResult
    outcome: PunchOutcome


class AttendanceMarker:
    """Matches a live descriptor and records the resulting punch."""

    def __init__(self, db: Session, matcher: FaceMatcher) -> None:
        self.db = db
        self.matcher = matcher
        self.settings = get_settings()

    def mark(self, requester: User, descriptor: Any, now: datetime) -> MarkResult:
        vector = validate_descriptor(descriptor, self.settings.descriptor_length)

        try:
            candidates = load_candidates(
                self.db,
                requester.company_id,
                cross_tenant=self.settings.cross_tenant_matching,
            )
        except SQLAlchemyError as exc:
            raise StorageError(error=str(exc)) from exc

        match = self.matcher.find_match(vector, candidates)
        if match.status is MatchStatus.NO_ENROLLMENT:
            logger.info("No descriptors enrolled for company %s", requester.company_id)
            raise NoEnrollment()
        if match.status is MatchStatus.NO_MATCH:
            logger.info("No match within threshold (nearest distance %.4f)", match.distance)
            raise NoMatch()

        user = self.db.get(User, match.user_id)
        zone = user.company.timezone if user.company is not None else None
        # The day is tenant-local; the stored instant is UTC.
        stamp = as_utc(now)
        today = tenant_now(stamp, zone).date()
        outcome = resolve_punch(SqlAttendanceStore(self.db), user.id, today, stamp)

        try:
            mark_used(self.db, user.id, stamp)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(error=str(exc)) from exc

        logger.info(
            "Recorded %s for user %s (distance %.4f)",
            outcome.action.value,
            user.id,
            match.distance,
        )
        return MarkResult(user=user, match=match, outcome=outcome)

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Sequence

import numpy as np

from attendance_api.core.config import get_settings
from attendance_api.core.exceptions import DescriptorLengthMismatch

logger = logging.getLogger("attendance.matcher")


class MatchStatus(str, enum.Enum):
    MATCHED = "matched"
    NO_MATCH = "no_match"
    NO_ENROLLMENT = "no_enrollment"


@dataclass(frozen=True)
class Candidate:
    user_id: int
    vector: np.ndarray


@dataclass(frozen=True)
class MatchResult:
    status: MatchStatus
    user_id: int | None = None
    distance: float | None = None

    @property
    def matched(self) -> bool:
        return self.status is MatchStatus.MATCHED

    @property
    def confidence(self) -> float | None:
        """Display score in percent. Not a probability; negative past distance 1.0."""
        if self.distance is None:
            return None
        return round((1 - self.distance) * 100, 2)

    @property
    def rounded_distance(self) -> float | None:
        if self.distance is None:
            return None
        return round(self.distance, 4)


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    left = np.asarray(a, dtype=np.float64)
    right = np.asarray(b, dtype=np.float64)
    if left.shape != right.shape:
        raise DescriptorLengthMismatch()
    return float(np.linalg.norm(left - right))


class FaceMatcher:
    """Nearest-neighbour lookup over a candidate snapshot.

    The global minimum distance is computed first and accepted only when it is
    strictly below ``threshold``. Ties resolve to the first candidate in scan
    order, so callers must pass candidates in a stable order.
    """

    def __init__(self, threshold: float) -> None:
        self.threshold = threshold

    def find_match(self, query: Sequence[float] | np.ndarray, candidates: Sequence[Candidate]) -> MatchResult:
        if not candidates:
            return MatchResult(MatchStatus.NO_ENROLLMENT)

        vector = np.asarray(query, dtype=np.float64)
        for candidate in candidates:
            if candidate.vector.shape != vector.shape:
                logger.error(
                    "Stored descriptor for user %s has shape %s, query has %s",
                    candidate.user_id,
                    candidate.vector.shape,
                    vector.shape,
                )
                raise DescriptorLengthMismatch()

        matrix = np.vstack([candidate.vector for candidate in candidates]).astype(np.float64)
        distances = np.linalg.norm(matrix - vector, axis=1)
        idx = int(np.argmin(distances))
        distance = float(distances[idx])
        if distance < self.threshold:
            return MatchResult(MatchStatus.MATCHED, candidates[idx].user_id, distance)
        return MatchResult(MatchStatus.NO_MATCH, None, distance)


@lru_cache(maxsize=1)
def get_matcher() -> FaceMatcher:
    settings = get_settings()
    return FaceMatcher(threshold=settings.match_threshold)

"""Error taxonomy shared by the study services and the HTTP layer."""
from __future__ import annotations


class StudyError(Exception):
    """Base class for every error the study core surfaces to its caller."""

    status_code = 500


class InvalidGrade(StudyError):
    """Raised when a review grade is not 1 (Hard), 2 (Medium) or 3 (Easy)."""

    status_code = 400

    def __init__(self, grade: object) -> None:
        super().__init__(
            f"grade must be 1 (Hard), 2 (Medium) or 3 (Easy), got {grade!r}"
        )
        self.grade = grade


class InvalidLimit(StudyError):
    """Raised when a card limit falls outside the allowed bounds."""

    status_code = 400

    def __init__(self, limit: object, low: int, high: int) -> None:
        super().__init__(f"limit must be between {low} and {high}, got {limit!r}")
        self.limit = limit
        self.low = low
        self.high = high


class NotFound(StudyError):
    """Raised when a card or deck is absent or not owned by the caller.

    Absence and foreign ownership produce the same error.
    """

    status_code = 404


class PersistenceFailure(StudyError):
    """Raised when the store is unavailable or a write could not complete."""

    status_code = 503

from __future__ import annotations


class AttendanceError(Exception):
    """Base exception for the attendance backend.

    Every subclass carries the HTTP status it is rendered with and a
    client-facing message. ``error`` holds optional low-level detail that is
    echoed back alongside the message.
    """

    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: str | None = None, *, error: str | None = None) -> None:
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)


class InvalidDescriptor(AttendanceError):
    """Raised when a descriptor is not exactly N finite numbers."""

    status_code = 422
    default_message = "Face descriptor must contain exactly 128 numeric values"


class NoEnrollment(AttendanceError):
    """Raised when the matching scope holds no descriptors at all."""

    status_code = 404
    default_message = "No face descriptors registered in the system"


class NoMatch(AttendanceError):
    """Raised when no stored descriptor lies within the match threshold."""

    status_code = 404
    default_message = "No matching face found in the system"


class AlreadyComplete(AttendanceError):
    """Raised when today's record is already punched out."""

    status_code = 409
    default_message = "Attendance already recorded for today"


class PunchConflict(AlreadyComplete):
    """Raised when a concurrent request won the same punch transition."""


class StorageError(AttendanceError):
    """Raised when persisting attendance state fails."""

    status_code = 500
    default_message = "Failed to process attendance"


class DescriptorLengthMismatch(AttendanceError):
    """Raised when a stored descriptor and the query differ in length."""

    status_code = 500
    default_message = "Failed to process attendance"


class NotFoundError(AttendanceError):
    status_code = 404
    default_message = "Resource not found"


class PermissionDenied(AttendanceError):
    status_code = 403
    default_message = "Unauthorized access"


class ConflictError(AttendanceError):
    status_code = 409
    default_message = "Resource already exists"


class BusinessRuleError(AttendanceError):
    status_code = 400
    default_message = "Request violates a business rule"

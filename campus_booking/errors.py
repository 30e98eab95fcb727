# campus_booking/errors.py
"""
Error taxonomy of the booking service.

Every error carries a stable machine-readable ``code``, the HTTP status it
maps to and a display ``message``. ``details`` holds structured data the
caller needs to act on the error (busy intervals, state names...).
"""
from typing import Any, Dict, Optional

from fastapi import status


class BookingServiceError(Exception):
    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be completed"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


# Malformed input
class ValidationError(BookingServiceError):
    code = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Invalid request"


class InvalidRange(ValidationError):
    code = "invalid_range"
    default_message = "End time must be after start time"


# Identity
class AuthenticationError(BookingServiceError):
    code = "authentication_error"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


class InvalidCredentials(AuthenticationError):
    code = "invalid_credentials"
    default_message = "Invalid credentials. Please check your email and password."


class SessionExpired(AuthenticationError):
    code = "session_expired"
    default_message = "Session expired. Please log in again."


class SessionInvalid(AuthenticationError):
    code = "session_invalid"
    default_message = "Session is not valid. Please log in again."


# Permission
class AuthorizationError(BookingServiceError):
    code = "denied"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to perform this action."


class NotFound(BookingServiceError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class DuplicateRecord(BookingServiceError):
    code = "duplicate"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Record already exists"


# Booking ledger
class ConflictError(BookingServiceError):
    code = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Time slot overlaps an existing booking"

    def __init__(self, busy_intervals, message: Optional[str] = None):
        self.busy_intervals = list(busy_intervals)
        super().__init__(
            message,
            details={
                "busy_intervals": [
                    {"start": start.isoformat(), "end": end.isoformat()}
                    for start, end in self.busy_intervals
                ]
            },
        )


class ResourceUnavailable(BookingServiceError):
    code = "resource_unavailable"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource is not accepting bookings"


class InvalidTransition(BookingServiceError):
    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Booking cannot move to the requested state"

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(
            f"Invalid booking state transition: {current} -> {target}",
            details={"current": current, "target": target},
        )


class ResourceInUse(BookingServiceError):
    code = "resource_in_use"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource still has active bookings"


class Busy(BookingServiceError):
    code = "busy"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Resource is busy, please retry"
    retry_after_seconds = 1

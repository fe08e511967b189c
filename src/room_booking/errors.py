from __future__ import annotations

from typing import Any


class ReservationError(Exception):
    """Base error; carries the HTTP status it maps to at the API boundary."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        return {"message": self.message}


class InvalidTimeFormat(ReservationError):
    status_code = 400
    default_message = "Time must be in HH:MM format"


class InvalidRange(ReservationError):
    status_code = 400
    default_message = "End time must be after start time"


class MissingField(ReservationError):
    status_code = 400
    default_message = "Please provide all fields"


class InvalidStatus(ReservationError):
    status_code = 400
    default_message = "Invalid status value"


class Forbidden(ReservationError):
    status_code = 403
    default_message = "Not authorized to cancel this reservation"


class NotFound(ReservationError):
    status_code = 404
    default_message = "Reservation not found"


class RoomUnavailable(ReservationError):
    status_code = 409
    default_message = "This room is not available at this time"

    def __init__(self, conflict: dict[str, Any], message: str | None = None) -> None:
        super().__init__(message)
        self.conflict = conflict

    def to_body(self) -> dict[str, Any]:
        return {"message": self.message, "conflict": self.conflict}


class StoreFailure(ReservationError):
    status_code = 500

    def __init__(self, error: str) -> None:
        super().__init__()
        self.error = error

    def to_body(self) -> dict[str, Any]:
        return {"message": self.message, "error": self.error}

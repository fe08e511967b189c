"""Detect time conflicts between a requested window and a room's bookings."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from aws_lambda_powertools import Logger

from . import dal
from .errors import InvalidRange
from .models import Reservation
from .timerange import day_bounds, overlaps, parse_clock

logger = Logger()

DEFAULT_EXCLUDED_STATUSES: frozenset[str] = frozenset({"rejected"})


@dataclass(frozen=True)
class NoConflict:
    pass


@dataclass(frozen=True)
class Conflict:
    reservation: Reservation

    def detail(self) -> dict[str, Any]:
        """Window of the blocking reservation, for display to the requester."""
        return {
            "date": self.reservation.date.isoformat(timespec="milliseconds"),
            "startTime": self.reservation.start_time,
            "endTime": self.reservation.end_time,
        }


def check_conflict(
    room_id: str,
    date: datetime,
    start_time: str,
    end_time: str,
    exclude_statuses: Iterable[str] = DEFAULT_EXCLUDED_STATUSES,
) -> NoConflict | Conflict:
    """Return the first same-day reservation of ``room_id`` overlapping the window.

    Reservations whose status is in ``exclude_statuses`` never block. The
    result of the read is not held against concurrent writers, so two callers
    racing on the same window can both see ``NoConflict``.
    """
    start = parse_clock(start_time)
    end = parse_clock(end_time)
    if end <= start:
        raise InvalidRange()

    day_start, day_end = day_bounds(date)
    candidates = dal.find_room_reservations(room_id, day_start, day_end, exclude_statuses)

    for existing in candidates:
        if overlaps(start, end, parse_clock(existing.start_time), parse_clock(existing.end_time)):
            logger.warning(
                "Reservation window conflicts",
                extra={"room_id": room_id, "conflicting_reservation_id": existing.reservation_id},
            )
            return Conflict(existing)
    return NoConflict()

from __future__ import annotations

from typing import cast

from aws_lambda_powertools import Logger

from . import dal
from .conflicts import Conflict, check_conflict
from .errors import Forbidden, InvalidRange, InvalidStatus, MissingField, NotFound, RoomUnavailable, StoreFailure
from .models import (
    RESERVATION_STATUSES,
    Reservation,
    ReservationCreate,
    ReservationStatus,
    ReservationView,
    Room,
    UserSummary,
)
from .timerange import parse_clock

logger = Logger()


class _Enricher:
    """Resolves user/room references for a single response."""

    def __init__(self, with_user: bool = True, with_room: bool = True) -> None:
        self.with_user = with_user
        self.with_room = with_room
        self._users: dict[str, UserSummary | None] = {}
        self._rooms: dict[str, Room | None] = {}

    def _user(self, user_id: str) -> UserSummary | None:
        if user_id not in self._users:
            self._users[user_id] = dal.get_user_summary(user_id)
        return self._users[user_id]

    def _room(self, room_id: str) -> Room | None:
        if room_id not in self._rooms:
            self._rooms[room_id] = dal.get_room(room_id)
        return self._rooms[room_id]

    def view(self, reservation: Reservation) -> ReservationView:
        return ReservationView(
            id=reservation.reservation_id,
            user=self._user(reservation.user_id) if self.with_user else reservation.user_id,
            room=self._room(reservation.room_id) if self.with_room else reservation.room_id,
            date=reservation.date,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            status=reservation.status,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
        )


def create_reservation(actor_id: str, payload: ReservationCreate) -> ReservationView:
    if not (payload.room and payload.date and payload.start_time and payload.end_time):
        raise MissingField()

    if parse_clock(payload.end_time) <= parse_clock(payload.start_time):
        raise InvalidRange()

    outcome = check_conflict(payload.room, payload.date, payload.start_time, payload.end_time)
    if isinstance(outcome, Conflict):
        raise RoomUnavailable(outcome.detail())

    reservation = dal.create_reservation(
        user_id=actor_id,
        room_id=payload.room,
        date=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
    )
    try:
        return _Enricher().view(reservation)
    except StoreFailure:
        # Already persisted at this point
        logger.exception(
            "Reservation stored but its view could not be built",
            extra={"reservation_id": reservation.reservation_id, "room_id": reservation.room_id},
        )
        raise


def list_my_reservations(actor_id: str) -> list[ReservationView]:
    enricher = _Enricher(with_user=False)
    return [enricher.view(r) for r in dal.list_reservations_for_user(actor_id)]


def list_all_reservations() -> list[ReservationView]:
    enricher = _Enricher()
    return [enricher.view(r) for r in dal.list_reservations()]


def get_reservation(reservation_id: str) -> ReservationView:
    return _Enricher().view(dal.get_reservation(reservation_id))


def update_reservation_status(reservation_id: str, status: str | None) -> ReservationView:
    if status not in RESERVATION_STATUSES:
        raise InvalidStatus()

    current = dal.get_reservation(reservation_id)
    if current.status != "pending":
        # Re-deciding is accepted; last write wins
        logger.warning(
            "Changing status of an already decided reservation",
            extra={"reservation_id": reservation_id, "from": current.status, "to": status},
        )

    updated = dal.update_status(reservation_id, cast(ReservationStatus, status))
    logger.info("Reservation status updated", extra={"reservation_id": reservation_id, "status": status})
    return _Enricher().view(updated)


def cancel_reservation(actor_id: str, reservation_id: str) -> None:
    reservation = dal.get_reservation(reservation_id)
    if str(reservation.user_id) != str(actor_id):
        raise Forbidden()

    dal.delete_reservation(reservation_id)
    logger.info(
        "Reservation cancelled",
        extra={"reservation_id": reservation_id, "status": reservation.status},
    )


def list_rooms() -> list[Room]:
    return dal.list_rooms()


def get_room(room_id: str) -> Room:
    room = dal.get_room(room_id)
    if room is None:
        raise NotFound(dal.ROOM_NOT_FOUND)
    return room
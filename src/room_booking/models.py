from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

ReservationStatus = Literal["pending", "approved", "rejected"]
RESERVATION_STATUSES: tuple[str, ...] = get_args(ReservationStatus)

DEFAULT_ROOM_IMAGE = "https://via.placeholder.com/400x300?text=Room+Image"


class ReservationCreate(BaseModel):
    # Every field is optional here so that an absent or empty value surfaces
    # as MissingField from the service rather than a schema error
    model_config = ConfigDict(populate_by_name=True)

    room: str | None = None
    date: datetime | None = None
    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")

    @field_validator("date", mode="before")
    @classmethod
    def _blank_date_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("date")
    @classmethod
    def _strip_time_of_day(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return value.replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)


class StatusUpdate(BaseModel):
    status: str | None = None


class Reservation(BaseModel):
    reservation_id: str
    user_id: str
    room_id: str
    date: datetime
    start_time: str
    end_time: str
    status: ReservationStatus = "pending"
    created_at: datetime
    updated_at: datetime


class Room(BaseModel):
    id: str
    name: str
    description: str
    image: str = DEFAULT_ROOM_IMAGE


class UserSummary(BaseModel):
    id: str
    name: str
    email: str


class ReservationView(BaseModel):
    """Reservation as returned to callers, with references optionally resolved."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    user: UserSummary | str | None
    room: Room | str | None
    date: datetime
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    status: ReservationStatus
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class ReservationEnvelope(BaseModel):
    message: str | None = None
    reservation: ReservationView


class ReservationList(BaseModel):
    reservations: list[ReservationView]


class RoomEnvelope(BaseModel):
    room: Room


class RoomList(BaseModel):
    rooms: list[Room]


class Message(BaseModel):
    message: str

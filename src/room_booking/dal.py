from __future__ import annotations

import os
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TypedDict, cast

import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

if TYPE_CHECKING:
    # Only for static type checking; not imported at runtime
    from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource
    from mypy_boto3_dynamodb.service_resource import Table as DynamoDBTable
else:
    # Fallbacks to satisfy annotations at runtime
    DynamoDBServiceResource = Any  # type: ignore[assignment]
    DynamoDBTable = Any  # type: ignore[assignment]

from .errors import NotFound, StoreFailure
from .models import DEFAULT_ROOM_IMAGE, Reservation, ReservationStatus, Room, UserSummary

logger = Logger()
_TABLE_NAME = os.environ.get("TABLE_NAME", "reservations")
_USERS_TABLE_NAME = os.environ.get("USERS_TABLE_NAME", "users")
_ROOMS_TABLE_NAME = os.environ.get("ROOMS_TABLE_NAME", "rooms")
ROOM_DATE_INDEX = os.environ.get("ROOM_DATE_INDEX", "room_id_date_index")
USER_INDEX = os.environ.get("USER_INDEX", "user_id_index")

_dynamodb: DynamoDBServiceResource = boto3.resource("dynamodb")
_table: DynamoDBTable = _dynamodb.Table(_TABLE_NAME)
_users_table: DynamoDBTable = _dynamodb.Table(_USERS_TABLE_NAME)
_rooms_table: DynamoDBTable = _dynamodb.Table(_ROOMS_TABLE_NAME)

RESERVATION_NOT_FOUND = "Reservation not found"
ROOM_NOT_FOUND = "Room not found"


class ReservationItem(TypedDict):
    reservation_id: str
    user_id: str
    room_id: str
    date: str
    start_time: str
    end_time: str
    status: str
    created_at: str
    updated_at: str


def _dt_to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat()


def _day_to_iso(dt: datetime) -> str:
    # Fixed width so that BETWEEN on the date range key compares correctly
    return dt.replace(tzinfo=None).isoformat(timespec="milliseconds")


def _iso_to_dt(s: str) -> datetime:
    return datetime.fromisoformat(s)


def _store_call(action: str, fn: Any, **kwargs: Any) -> dict[str, Any]:
    try:
        return cast(dict[str, Any], fn(**kwargs))
    except ClientError as exc:
        if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
            raise NotFound(RESERVATION_NOT_FOUND) from exc
        logger.exception("Store request failed", extra={"action": action})
        raise StoreFailure(str(exc)) from exc
    except BotoCoreError as exc:
        logger.exception("Store request failed", extra={"action": action})
        raise StoreFailure(str(exc)) from exc


def _collect(action: str, fn: Any, **kwargs: Any) -> list[dict[str, Any]]:
    # Query and Scan both page through LastEvaluatedKey
    items: list[dict[str, Any]] = []
    while True:
        resp = _store_call(action, fn, **kwargs)
        items.extend(it for it in resp.get("Items", []) if isinstance(it, dict))
        last_key = resp.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


def create_reservation(
    user_id: str, room_id: str, date: datetime, start_time: str, end_time: str
) -> Reservation:
    reservation_id = str(uuid.uuid4())
    now = _dt_to_iso(datetime.now(UTC))
    item: ReservationItem = {
        "reservation_id": reservation_id,
        "user_id": user_id,
        "room_id": room_id,
        "date": _day_to_iso(date),
        "start_time": start_time,
        "end_time": end_time,
        "status": "pending",
        "created_at": now,
        "updated_at": now,
    }

    logger.info("Creating reservation", extra={"reservation_id": reservation_id, "room_id": room_id})
    _store_call("put_item", _table.put_item, Item=item)
    return _to_model(item)


def get_reservation(reservation_id: str) -> Reservation:
    resp = _store_call("get_item", _table.get_item, Key={"reservation_id": reservation_id})
    item = resp.get("Item")
    if not isinstance(item, dict):
        raise NotFound(RESERVATION_NOT_FOUND)
    return _to_model(cast(ReservationItem, item))


def find_room_reservations(
    room_id: str,
    day_start: datetime,
    day_end: datetime,
    exclude_statuses: Iterable[str] = (),
) -> list[Reservation]:
    names = {"#d": "date"}
    values: dict[str, Any] = {
        ":rid": room_id,
        ":lo": _day_to_iso(day_start),
        ":hi": _day_to_iso(day_end),
    }
    kwargs: dict[str, Any] = {
        "IndexName": ROOM_DATE_INDEX,
        "KeyConditionExpression": "room_id = :rid AND #d BETWEEN :lo AND :hi",
    }

    excluded = sorted(set(exclude_statuses))
    if excluded:
        placeholders = []
        for i, status in enumerate(excluded):
            values[f":x{i}"] = status
            placeholders.append(f":x{i}")
        names["#s"] = "status"
        kwargs["FilterExpression"] = f"NOT #s IN ({', '.join(placeholders)})"

    raw_items = _collect(
        "query",
        _table.query,
        ExpressionAttributeNames=names,
        ExpressionAttributeValues=values,
        **kwargs,
    )
    return [_to_model(cast(ReservationItem, it)) for it in raw_items]


def list_reservations_for_user(user_id: str) -> list[Reservation]:
    raw_items = _collect(
        "query",
        _table.query,
        IndexName=USER_INDEX,
        KeyConditionExpression="user_id = :uid",
        ExpressionAttributeValues={":uid": user_id},
        ScanIndexForward=False,
    )
    return _newest_first(_to_model(cast(ReservationItem, it)) for it in raw_items)


def list_reservations() -> list[Reservation]:
    raw_items = _collect("scan", _table.scan)
    return _newest_first(_to_model(cast(ReservationItem, it)) for it in raw_items)


def update_status(reservation_id: str, status: ReservationStatus) -> Reservation:
    resp = _store_call(
        "update_item",
        _table.update_item,
        Key={"reservation_id": reservation_id},
        UpdateExpression="SET #s = :s, #u = :u",
        ConditionExpression="attribute_exists(reservation_id)",
        ExpressionAttributeNames={"#s": "status", "#u": "updated_at"},
        ExpressionAttributeValues={":s": status, ":u": _dt_to_iso(datetime.now(UTC))},
        ReturnValues="ALL_NEW",
    )
    attrs = cast(dict[str, Any], resp.get("Attributes") or {})
    return _to_model(cast(ReservationItem, attrs))


def delete_reservation(reservation_id: str) -> None:
    _store_call("delete_item", _table.delete_item, Key={"reservation_id": reservation_id})


def get_user_summary(user_id: str) -> UserSummary | None:
    resp = _store_call("get_item", _users_table.get_item, Key={"user_id": user_id})
    item = resp.get("Item")
    if not isinstance(item, dict):
        return None
    return UserSummary(id=item["user_id"], name=item["name"], email=item["email"])


def get_room(room_id: str) -> Room | None:
    resp = _store_call("get_item", _rooms_table.get_item, Key={"room_id": room_id})
    item = resp.get("Item")
    if not isinstance(item, dict):
        return None
    return _to_room(item)


def list_rooms() -> list[Room]:
    return [_to_room(it) for it in _collect("scan", _rooms_table.scan)]


def _newest_first(reservations: Iterable[Reservation]) -> list[Reservation]:
    # sorted() is stable, so equal dates keep store order
    return sorted(reservations, key=lambda r: r.date, reverse=True)


def _to_room(item: dict[str, Any]) -> Room:
    return Room(
        id=item["room_id"],
        name=item["name"],
        description=item["description"],
        image=item.get("image") or DEFAULT_ROOM_IMAGE,
    )


def _to_model(item: ReservationItem) -> Reservation:
    return Reservation(
        reservation_id=item["reservation_id"],
        user_id=item["user_id"],
        room_id=item["room_id"],
        date=_iso_to_dt(item["date"]),
        start_time=item["start_time"],
        end_time=item["end_time"],
        status=item.get("status", "pending"),  # type: ignore[arg-type]
        created_at=_iso_to_dt(item["created_at"]),
        updated_at=_iso_to_dt(item["updated_at"]),
    )

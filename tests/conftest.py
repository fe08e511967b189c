from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

# boto3 resolves a region when dal builds its table handles at import time
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")

import pytest  # noqa: E402
from botocore.exceptions import ClientError  # noqa: E402

from room_booking import dal  # noqa: E402


class FakeTable:
    def __init__(self, key: str, page_size: int | None = None):
        self.key = key
        self.items: dict[str, dict[str, Any]] = {}
        self.page_size = page_size
        self.calls: list[str] = []

    def put_item(self, Item):  # noqa NOSONAR
        self.calls.append("put_item")
        self.items[Item[self.key]] = dict(Item)

    def get_item(self, Key):  # noqa NOSONAR
        self.calls.append("get_item")
        item = self.items.get(Key[self.key])
        return {"Item": dict(item)} if item else {}

    def update_item(self, **kwargs):
        self.calls.append("update_item")
        key = kwargs["Key"][self.key]
        if "attribute_exists" in kwargs.get("ConditionExpression", "") and key not in self.items:
            raise ClientError(
                {"Error": {"Code": "ConditionalCheckFailedException", "Message": "The conditional request failed"}},
                "UpdateItem",
            )
        attrs = self.items[key]
        eav = kwargs.get("ExpressionAttributeValues") or {}
        ean = kwargs.get("ExpressionAttributeNames") or {}
        set_part = kwargs["UpdateExpression"].split("SET", 1)[1]
        for assign in [s.strip() for s in set_part.split(",") if s.strip()]:
            name, val = [s.strip() for s in assign.split("=")]
            attrs[ean.get(name, name)] = eav[val]
        return {"Attributes": dict(attrs)}

    def delete_item(self, Key):  # noqa NOSONAR
        self.calls.append("delete_item")
        self.items.pop(Key[self.key], None)

    def query(self, **kwargs):
        self.calls.append("query")
        values = kwargs["ExpressionAttributeValues"]
        if kwargs["IndexName"] == dal.ROOM_DATE_INDEX:
            listed = {v for k, v in values.items() if k.startswith(":x")}
            filter_expr = kwargs.get("FilterExpression", "")
            negated = filter_expr.startswith("NOT ")
            items = [
                it
                for it in self.items.values()
                if it["room_id"] == values[":rid"]
                and values[":lo"] <= it["date"] <= values[":hi"]
                and (not filter_expr or (it["status"] in listed) != negated)
            ]
        else:
            items = [it for it in self.items.values() if it.get("user_id") == values[":uid"]]
        return {"Items": [dict(it) for it in items]}

    def scan(self, **kwargs):
        self.calls.append("scan")
        items = [dict(it) for it in self.items.values()]
        if self.page_size is None:
            return {"Items": items}
        start = 0
        if "ExclusiveStartKey" in kwargs:
            last = kwargs["ExclusiveStartKey"][self.key]
            start = [it[self.key] for it in items].index(last) + 1
        page = items[start : start + self.page_size]
        resp: dict[str, Any] = {"Items": page}
        if start + self.page_size < len(items):
            resp["LastEvaluatedKey"] = {self.key: page[-1][self.key]}
        return resp


@dataclass
class FakeTables:
    reservations: FakeTable
    users: FakeTable
    rooms: FakeTable


@pytest.fixture(autouse=True)
def tables(monkeypatch: pytest.MonkeyPatch) -> FakeTables:
    fakes = FakeTables(
        reservations=FakeTable("reservation_id"),
        users=FakeTable("user_id"),
        rooms=FakeTable("room_id"),
    )
    fakes.users.put_item(Item={"user_id": "u-1", "name": "Alice", "email": "alice@example.com", "role": "regular"})
    fakes.users.put_item(Item={"user_id": "u-2", "name": "Bob", "email": "bob@example.com", "role": "regular"})
    fakes.users.put_item(Item={"user_id": "admin-1", "name": "Admin", "email": "admin@example.com", "role": "admin"})
    fakes.rooms.put_item(
        Item={
            "room_id": "r-1",
            "name": "Main Hall",
            "description": "Large hall for services and events.",
            "image": "https://images.example.com/main-hall.jpg",
        }
    )
    fakes.rooms.put_item(Item={"room_id": "r-2", "name": "Prayer Room", "description": "Quiet room."})

    monkeypatch.setattr(dal, "_table", fakes.reservations)
    monkeypatch.setattr(dal, "_users_table", fakes.users)
    monkeypatch.setattr(dal, "_rooms_table", fakes.rooms)
    return fakes

"""
Storage backends for MongoDB and an in-memory fallback implementation.
"""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, Optional, Protocol

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import (
    ConnectionFailure,
    DuplicateKeyError,
    ExecutionTimeout,
    PyMongoError,
    WTimeoutError,
)

from listings.errors import StorageUnavailable, UsernameTakenError
from listings.schemas import InsertProperty, InsertUser
from listings.security import hash_password

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserRecord:
    id: str
    username: str
    password_hash: str = field(repr=False)

    def as_dict(self) -> dict:
        return {"id": self.id, "username": self.username}


@dataclass(frozen=True)
class PropertyRecord:
    id: str
    title: str
    price: float
    location: str
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    area: Optional[float] = None
    type: str = "house"
    status: str = "available"

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "location": self.location,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "area": self.area,
            "type": self.type,
            "status": self.status,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


class StorageBackend(Protocol):
    """Operations every backend provides. Payloads arrive already validated."""

    name: str

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        ...

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        ...

    def create_user(self, payload: InsertUser) -> UserRecord:
        ...

    def get_property(self, property_id: str) -> Optional[PropertyRecord]:
        ...

    def list_properties(self) -> list[PropertyRecord]:
        ...

    def create_property(self, payload: InsertProperty) -> PropertyRecord:
        ...

    def update_property(
        self, property_id: str, changes: dict[str, Any]
    ) -> Optional[PropertyRecord]:
        ...

    def delete_property(self, property_id: str) -> bool:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemStorage:
    """Process-local storage. Nothing survives a restart."""

    name = "memory"

    def __init__(self):
        self.users: Dict[str, UserRecord] = {}
        self.properties: Dict[str, PropertyRecord] = {}
        self._users_lock = threading.Lock()
        self._properties_lock = threading.Lock()

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._users_lock:
            self.users.clear()
        with self._properties_lock:
            self.properties.clear()

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._users_lock:
            return self._find_username(username)

    def _find_username(self, username: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.username == username:
                return user
        return None

    def create_user(self, payload: InsertUser) -> UserRecord:
        password_hash = hash_password(payload.password)
        with self._users_lock:
            if self._find_username(payload.username) is not None:
                raise UsernameTakenError(payload.username)
            user = UserRecord(
                id=str(uuid.uuid4()),
                username=payload.username,
                password_hash=password_hash,
            )
            self.users[user.id] = user
        return user

    def get_property(self, property_id: str) -> Optional[PropertyRecord]:
        return self.properties.get(property_id)

    def list_properties(self) -> list[PropertyRecord]:
        with self._properties_lock:
            return list(self.properties.values())

    def create_property(self, payload: InsertProperty) -> PropertyRecord:
        now = _utcnow()
        record = PropertyRecord(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            **payload.model_dump(exclude_none=True),
        )
        with self._properties_lock:
            self.properties[record.id] = record
        return record

    def update_property(
        self, property_id: str, changes: dict[str, Any]
    ) -> Optional[PropertyRecord]:
        with self._properties_lock:
            existing = self.properties.get(property_id)
            if existing is None:
                return None
            updated = replace(
                existing,
                **changes,
                updated_at=max(_utcnow(), existing.updated_at),
            )
            self.properties[property_id] = updated
            return updated

    def delete_property(self, property_id: str) -> bool:
        with self._properties_lock:
            return self.properties.pop(property_id, None) is not None


def _object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _bson_now() -> datetime:
    # BSON dates carry millisecond precision.
    now = _utcnow()
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    try:
        yield
    except (ConnectionFailure, ExecutionTimeout, WTimeoutError) as exc:
        logger.warning("MongoDB %s failed: %s", action, exc)
        raise StorageUnavailable(f"MongoDB unavailable during {action}") from exc


def _to_user(doc: dict) -> UserRecord:
    return UserRecord(
        id=str(doc["_id"]),
        username=doc["username"],
        password_hash=doc["passwordHash"],
    )


def _to_property(doc: dict) -> PropertyRecord:
    created_at = _as_utc(doc["createdAt"])
    return PropertyRecord(
        id=str(doc["_id"]),
        title=doc["title"],
        description=doc.get("description"),
        price=doc["price"],
        location=doc["location"],
        bedrooms=doc.get("bedrooms"),
        bathrooms=doc.get("bathrooms"),
        area=doc.get("area"),
        type=doc.get("type", "house"),
        status=doc.get("status", "available"),
        created_at=created_at,
        # updatedAt comes from the server clock, createdAt from ours.
        updated_at=max(_as_utc(doc["updatedAt"]), created_at),
    )


class MongoStorage:
    """MongoDB-backed implementation using the ``users`` and ``properties`` collections."""

    name = "mongo"

    def __init__(self, database: Database):
        self.users: Collection = database["users"]
        self.properties: Collection = database["properties"]
        self._indexes_ready = False

    def ensure_indexes(self) -> None:
        if self._indexes_ready:
            return
        with _translate_errors("create_index"):
            self.users.create_index([("username", ASCENDING)], unique=True)
        self._indexes_ready = True

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        with _translate_errors("get_user"):
            doc = self.users.find_one({"_id": oid})
        return _to_user(doc) if doc else None

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with _translate_errors("get_user_by_username"):
            doc = self.users.find_one({"username": username})
        return _to_user(doc) if doc else None

    def create_user(self, payload: InsertUser) -> UserRecord:
        self.ensure_indexes()
        doc = {
            "username": payload.username,
            "passwordHash": hash_password(payload.password),
        }
        with _translate_errors("create_user"):
            try:
                self.users.insert_one(doc)
            except DuplicateKeyError as exc:
                raise UsernameTakenError(payload.username) from exc
        return _to_user(doc)

    def get_property(self, property_id: str) -> Optional[PropertyRecord]:
        oid = _object_id(property_id)
        if oid is None:
            return None
        with _translate_errors("get_property"):
            doc = self.properties.find_one({"_id": oid})
        return _to_property(doc) if doc else None

    def list_properties(self) -> list[PropertyRecord]:
        with _translate_errors("list_properties"):
            docs = list(self.properties.find().sort("_id", ASCENDING))
        return [_to_property(doc) for doc in docs]

    def create_property(self, payload: InsertProperty) -> PropertyRecord:
        now = _bson_now()
        doc = payload.model_dump(exclude_none=True)
        doc["createdAt"] = now
        doc["updatedAt"] = now
        with _translate_errors("create_property"):
            self.properties.insert_one(doc)
        return _to_property(doc)

    def update_property(
        self, property_id: str, changes: dict[str, Any]
    ) -> Optional[PropertyRecord]:
        oid = _object_id(property_id)
        if oid is None:
            return None
        update: dict[str, Any] = {"$currentDate": {"updatedAt": True}}
        if changes:
            update["$set"] = changes
        with _translate_errors("update_property"):
            doc = self.properties.find_one_and_update(
                {"_id": oid}, update, return_document=ReturnDocument.AFTER
            )
        return _to_property(doc) if doc else None

    def delete_property(self, property_id: str) -> bool:
        oid = _object_id(property_id)
        if oid is None:
            return False
        with _translate_errors("delete_property"):
            doc = self.properties.find_one_and_delete({"_id": oid})
        return doc is not None


class MongoConnection:
    """
    Owns the MongoDB client and answers whether it is currently usable.

    The client monitors the deployment in the background, so ``is_ready``
    only reads the driver's view of the topology and never blocks.
    """

    def __init__(
        self,
        url: str,
        database_name: str,
        timeout_ms: int = 2000,
        client_factory: Callable[..., MongoClient] = MongoClient,
    ):
        if not url:
            raise ValueError("MONGODB_URL is required for MongoConnection")
        self.database_name = database_name
        self.client = client_factory(
            url, serverSelectionTimeoutMS=timeout_ms, tz_aware=True
        )

    @property
    def database(self) -> Database:
        return self.client[self.database_name]

    def connect(self) -> bool:
        """Ping the server once so startup logs the mode we start in."""
        try:
            self.client.admin.command("ping")
        except PyMongoError as exc:
            logger.error("MongoDB connection error: %s", exc)
            logger.warning("Falling back to memory-only mode.")
            return False
        logger.info("Connected to MongoDB")
        return True

    def is_ready(self) -> bool:
        return self.client.topology_description.has_writable_server()

    def close(self) -> None:
        self.client.close()

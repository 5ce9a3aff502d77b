"""
MongoDB access for the Payment Portal.

A single Database object is created at startup (see main.lifespan), kept on
app.state and handed to route handlers through the get_db dependency.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Request
from pymongo import ASCENDING, DESCENDING, MongoClient

from logging_config import get_logger

logger = get_logger(__name__)

ACCOUNT_COLLECTIONS = ("customers", "employees", "users")


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse a hex id, returning None for anything malformed."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    out = dict(doc)
    if "_id" in out:
        out["id"] = str(out.pop("_id"))
    return out


class Database:
    def __init__(self, url: str, name: str, client: Optional[MongoClient] = None):
        self.url = url
        self.name = name
        self._client = client
        self._db = None

    @property
    def db(self):
        if self._db is None:
            raise RuntimeError("Database is not connected")
        return self._db

    @property
    def connected(self) -> bool:
        return self._db is not None

    def connect(self) -> "Database":
        if self._client is None:
            self._client = MongoClient(self.url, serverSelectionTimeoutMS=5000, tz_aware=True)
        self._db = self._client[self.name]
        self.ping()
        self.ensure_indexes()
        logger.info("database_connected", database=self.name)
        return self

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info("database_closed", database=self.name)
        self._client = None
        self._db = None

    def ping(self) -> bool:
        self.db.command("ping")
        return True

    def ensure_indexes(self) -> None:
        for name in ACCOUNT_COLLECTIONS:
            self.db[name].create_index([("username", ASCENDING)], unique=True)
        self.db["payments"].create_index([("customer_id", ASCENDING), ("created_at", DESCENDING)])
        self.db["payments"].create_index([("status", ASCENDING), ("created_at", DESCENDING)])

    def collection(self, name: str):
        return self.db[name]

    def list_collection_names(self) -> List[str]:
        return self.db.list_collection_names()

    def create_document(self, collection_name: str, data: Dict[str, Any]) -> str:
        doc = dict(data)
        doc.setdefault("created_at", datetime.now(timezone.utc))
        inserted_id = self.db[collection_name].insert_one(doc).inserted_id
        return str(inserted_id)

    def get_documents(
        self,
        collection_name: str,
        filter_dict: Optional[Dict[str, Any]] = None,
        sort: Optional[Iterable[Tuple[str, int]]] = None,
        limit: int = 0,
        skip: int = 0,
    ) -> List[Dict[str, Any]]:
        cursor = self.db[collection_name].find(filter_dict or {})
        if sort:
            cursor = cursor.sort(list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [serialize(d) for d in cursor]


def get_db(request: Request) -> Database:
    return request.app.state.db

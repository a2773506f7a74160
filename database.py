"""
MongoDB access for the portfolio API.

One client per process: ``connect()`` builds it on first use and hands the
same database handle back afterwards. Routes receive the handle through the
``get_db`` dependency so tests can swap in another database.
"""

import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from errors import ValidationError

logger = structlog.get_logger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "portfolio")

_client: Optional[MongoClient] = None
_db: Optional[Database] = None

Sort = List[Tuple[str, int]]
NEWEST_FIRST: Sort = [("createdAt", -1), ("_id", -1)]

SLUGGED_COLLECTIONS = ("blog", "event")


def connect() -> Database:
    global _client, _db
    if _db is not None:
        return _db
    url = os.getenv("DATABASE_URL", DATABASE_URL)
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    try:
        client = MongoClient(url, serverSelectionTimeoutMS=5000)
        db = client[os.getenv("DATABASE_NAME", DATABASE_NAME)]
        ensure_indexes(db)
    except PyMongoError as e:
        logger.error("database_connect_failed", error=str(e))
        raise
    _client, _db = client, db
    logger.info("database_connected", database=_db.name)
    return _db


def ensure_indexes(db: Database) -> None:
    for name in SLUGGED_COLLECTIONS:
        db[name].create_index("slug", unique=True)


def close() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
    _client = None
    _db = None


def get_db() -> Database:
    return connect()


def now() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: Union[str, ObjectId]) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not value:
        raise ValidationError("Invalid id")
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationError("Invalid id")


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    d = {**doc}
    if d.get("_id") is not None:
        d["id"] = str(d.pop("_id"))
    return d


def _as_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]) -> dict:
    doc = _as_dict(data)
    stamp = now()
    doc["createdAt"] = stamp
    doc["updatedAt"] = stamp
    result = db[collection_name].insert_one(doc)
    doc["_id"] = result.inserted_id
    return serialize_doc(doc)


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[Sort] = None,
    limit: Optional[int] = None,
) -> List[dict]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return [serialize_doc(d) for d in cursor]


def get_document(db: Database, collection_name: str, doc_id: str) -> Optional[dict]:
    return serialize_doc(db[collection_name].find_one({"_id": to_object_id(doc_id)}))


def update_document(db: Database, collection_name: str, doc_id: str, update: dict) -> Optional[dict]:
    """Apply ``$set`` to one document; returns the updated document or None if the id is unknown."""
    changes = {**update, "updatedAt": now()}
    res = db[collection_name].find_one_and_update(
        {"_id": to_object_id(doc_id)},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    return serialize_doc(res)


def delete_document(db: Database, collection_name: str, doc_id: str) -> bool:
    res = db[collection_name].delete_one({"_id": to_object_id(doc_id)})
    return res.deleted_count > 0


# Singleton documents (About, Contact) are addressed by a fixed key so there is
# never more than one of them.

def get_singleton(db: Database, collection_name: str) -> Optional[dict]:
    doc = serialize_doc(db[collection_name].find_one({"key": collection_name}))
    if doc is not None:
        doc.pop("key", None)
    return doc


def upsert_singleton(db: Database, collection_name: str, update: dict) -> dict:
    stamp = now()
    res = db[collection_name].find_one_and_update(
        {"key": collection_name},
        {"$set": {**update, "updatedAt": stamp}, "$setOnInsert": {"createdAt": stamp}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    doc = serialize_doc(res)
    doc.pop("key", None)
    return doc


def delete_singleton(db: Database, collection_name: str) -> bool:
    res = db[collection_name].delete_one({"key": collection_name})
    return res.deleted_count > 0


def slug_taken(db: Database, collection_name: str, slug: str, exclude_id: Optional[str] = None) -> bool:
    query: Dict[str, Any] = {"slug": slug}
    if exclude_id is not None:
        query["_id"] = {"$ne": to_object_id(exclude_id)}
    return db[collection_name].find_one(query, {"_id": 1}) is not None

"""
Database Helper Functions

MongoDB helpers shared by the route modules. The client is built at import
time from DATABASE_URL / DATABASE_NAME; `db` stays None when either is
missing so the app can still start far enough to report it on /test.
"""

import os
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from dotenv import load_dotenv
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient, ReturnDocument

load_dotenv()

logger = logging.getLogger(__name__)

_client = None
db = None

database_url = os.getenv("DATABASE_URL")
database_name = os.getenv("DATABASE_NAME")

if database_url and database_name:
    _client = MongoClient(database_url)
    db = _client[database_name]


def get_db():
    if db is None:
        raise RuntimeError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    return db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_document(collection_name: str, data: Union[BaseModel, dict], timestamps: bool = True) -> str:
    """Insert a single document, stamping createdAt/updatedAt unless told not to, and return its id"""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(by_alias=True)
    else:
        data_dict = data.copy()

    if timestamps:
        now = utcnow()
        data_dict.setdefault("createdAt", now)
        data_dict.setdefault("updatedAt", now)

    result = get_db()[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None, sort_by: Optional[str] = None, limit: Optional[int] = None) -> List[dict]:
    """Get documents from a collection, newest first when sort_by is given"""
    cursor = get_db()[collection_name].find(filter_dict or {})
    if sort_by:
        cursor = cursor.sort(sort_by, -1)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def parse_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def get_document(collection_name: str, document_id: str) -> Optional[dict]:
    """Fetch by _id; malformed ids simply match nothing"""
    oid = parse_object_id(document_id)
    if oid is None:
        return None
    return get_db()[collection_name].find_one({"_id": oid})


def update_document(collection_name: str, document_id: str, fields: dict) -> Optional[dict]:
    """$set the given fields plus updatedAt in one atomic step; None when no such document"""
    oid = parse_object_id(document_id)
    if oid is None:
        return None
    return get_db()[collection_name].find_one_and_update(
        {"_id": oid},
        {"$set": {**fields, "updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


def to_serializable(value: Any) -> Any:
    """Make a Mongo document JSON friendly (ObjectIds become strings)"""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: to_serializable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_serializable(v) for v in value]
    return value


def ensure_indexes() -> None:
    """Create the unique indexes the route handlers rely on for duplicate detection"""
    database = get_db()
    database["user"].create_index([("email", ASCENDING)], unique=True)
    database["user"].create_index([("phone", ASCENDING)], unique=True)
    database["favorite"].create_index([("userId", ASCENDING), ("vehicleId", ASCENDING)], unique=True)
    logger.info("MongoDB indexes ensured")


def init_db() -> None:
    """Check the server is reachable and prepare indexes; run once at startup"""
    database = get_db()
    collections = database.list_collection_names()
    logger.info("MongoDB connected (%s, %d collections)", database.name, len(collections))
    ensure_indexes()


def database_status() -> Dict[str, Any]:
    """Connectivity summary served on /test"""
    status = {"backend": "running", "database": "not configured", "collections": []}
    if db is None:
        return status
    try:
        status["collections"] = sorted(db.list_collection_names())
        status["database"] = "connected"
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        status["database"] = "unreachable"
        status["error"] = str(e)
    return status

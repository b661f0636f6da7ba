"""
Directory Store connection

Connects to MongoDB using the DATABASE_URL / DATABASE_NAME environment
variables. When DATABASE_URL is not set, ``db`` stays ``None`` and every store
operation fails with StoreUnavailable instead of crashing at import time.
"""
import functools
import logging
import os
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from errors import StoreUnavailable

logger = logging.getLogger(__name__)

DONORS = "donors"
EMERGENCY_REQUESTS = "emergency_requests"

_client = None
db = None

database_url = os.getenv("DATABASE_URL")
database_name = os.getenv("DATABASE_NAME", "bloodlink")

if database_url:
    _client = MongoClient(database_url)
    db = _client[database_name]


def collection(name: str):
    if db is None:
        raise StoreUnavailable("Database not configured")
    return db[name]


def store_operation(func):
    """Report any driver failure inside ``func`` as StoreUnavailable."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PyMongoError as e:
            logger.exception("Store call %s failed", func.__name__)
            raise StoreUnavailable(str(e)) from e

    return wrapper


def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document stamped with createdAt and return its id."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(by_alias=True)
    else:
        data_dict = dict(data)
    data_dict["createdAt"] = datetime.now(timezone.utc)
    result = collection(collection_name).insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None) -> list:
    return list(collection(collection_name).find(filter_dict or {}))

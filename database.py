"""
MongoDB access for the site content admin.

`Database` owns the process-wide `MongoClient`. It is created once by the
application lifespan, kept on `app.state`, and handed to routes through the
`get_database` dependency.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from bson import ObjectId
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from pymongo import DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from config import Settings
from errors import StoreUnavailableError

logger = logging.getLogger(__name__)

# Collection names
SHARED = "shared_data"
HOMEPAGE = "homepage"
ABOUTUS = "aboutus"
SITECONTENT = "sitecontent"
PRODUCTS = "products"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def store_errors(action: str):
    """Re-raise driver failures as StoreUnavailableError."""
    try:
        yield
    except PyMongoError as e:
        logger.warning("Database error while trying to %s: %s", action, e)
        raise StoreUnavailableError(f"Failed to {action}") from e


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Plain JSON-safe copy of a stored document: `_id` becomes `id`."""
    if not doc:
        return {}
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = doc.pop("_id")
    return jsonable_encoder(doc, custom_encoder={ObjectId: str})


class Database:
    def __init__(self, url: str, name: str, client_factory: Callable[..., Any] = MongoClient, **client_options):
        self.url = url
        self.name = name
        self._client_factory = client_factory
        self._client_options = client_options
        self._client = None
        self._db = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.DATABASE_URL,
            settings.DATABASE_NAME,
            serverSelectionTimeoutMS=settings.DB_SERVER_SELECTION_TIMEOUT_MS,
        )

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    def connect(self):
        """Return the database handle, opening the client on first use.

        Safe to call before every operation; an established client is reused.
        """
        if self._db is not None:
            return self._db
        with store_errors("connect to the database"):
            client = self._client_factory(self.url, **self._client_options)
            try:
                client.admin.command("ping")
            except PyMongoError:
                client.close()
                raise
        self._client = client
        self._db = client[self.name]
        logger.info("Connected to MongoDB database %r", self.name)
        return self._db

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info("Closed MongoDB connection")
        self._client = None
        self._db = None

    def collection(self, name: str) -> Collection:
        return self.connect()[name]

    @property
    def shared(self) -> Collection:
        return self.collection(SHARED)

    @property
    def homepage(self) -> Collection:
        return self.collection(HOMEPAGE)

    @property
    def aboutus(self) -> Collection:
        return self.collection(ABOUTUS)

    @property
    def sitecontent(self) -> Collection:
        return self.collection(SITECONTENT)

    @property
    def products(self) -> Collection:
        return self.collection(PRODUCTS)

    # Helpers

    def create_document(self, collection_name: str, data: Union[BaseModel, dict]) -> str:
        """Insert a document stamped with created_at/updated_at, return its id."""
        if isinstance(data, BaseModel):
            data_dict = data.model_dump(by_alias=True, exclude_none=True)
        else:
            data_dict = data.copy()
        now = utcnow()
        data_dict["created_at"] = now
        data_dict["updated_at"] = now
        with store_errors(f"create {collection_name} document"):
            result = self.collection(collection_name).insert_one(data_dict)
        return str(result.inserted_id)

    def get_documents(
        self,
        collection_name: str,
        filter_dict: Optional[dict] = None,
        limit: Optional[int] = None,
        sort: Optional[List[tuple]] = None,
    ) -> List[dict]:
        with store_errors(f"fetch {collection_name} documents"):
            cursor = self.collection(collection_name).find(filter_dict or {})
            if sort:
                cursor = cursor.sort(sort)
            if limit:
                cursor = cursor.limit(limit)
            return list(cursor)

    def newest_first(self, collection_name: str) -> List[dict]:
        return self.get_documents(collection_name, sort=[("created_at", DESCENDING), ("_id", DESCENDING)])

    def collection_names(self) -> List[str]:
        with store_errors("list collections"):
            return self.connect().list_collection_names()


def get_database(request: Request) -> Database:
    return request.app.state.database

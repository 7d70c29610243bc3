"""
Singleton documents: shared settings, home page, about us, site content.

Each kind lives in its own collection as exactly one document whose `_id` is
a fixed string, so concurrent first writes converge on the same document
instead of racing to create two.

Writes are a shallow top-level merge: fields present in the payload replace
the stored ones wholesale (nested objects and lists included), fields absent
from the payload keep their stored value.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple, Type, Union

from bson import ObjectId
from pydantic import BaseModel, ValidationError
from pymongo import ReturnDocument

import database
from database import Database, serialize_doc, store_errors, utcnow
from errors import DocumentValidationError
from revalidate import PageCache
from schemas import AboutUs, HomePage, SharedSettings, SiteContent

logger = logging.getLogger(__name__)


class SingletonKind(str, Enum):
    SHARED = "shared"
    HOMEPAGE = "homepage"
    ABOUTUS = "aboutus"
    SITECONTENT = "sitecontent"


@dataclass(frozen=True)
class Singleton:
    model: Type[BaseModel]
    collection: str
    doc_id: str
    paths: Tuple[str, ...]
    label: str


SINGLETONS: Dict[SingletonKind, Singleton] = {
    SingletonKind.SHARED: Singleton(
        SharedSettings, database.SHARED, "shared",
        ("/", "/about-us", "/dashboard", "/dashboard/commons"),
        "shared data",
    ),
    SingletonKind.HOMEPAGE: Singleton(
        HomePage, database.HOMEPAGE, "homepage",
        ("/", "/dashboard", "/dashboard/homepage"),
        "homepage data",
    ),
    SingletonKind.ABOUTUS: Singleton(
        AboutUs, database.ABOUTUS, "aboutus",
        ("/", "/about-us", "/dashboard/about-us"),
        "about us data",
    ),
    SingletonKind.SITECONTENT: Singleton(
        SiteContent, database.SITECONTENT, "sitecontent",
        ("/",),
        "site content",
    ),
}


def validate_partial(kind: SingletonKind, partial: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """Validate a partial document and return only the fields it sets."""
    entry = SINGLETONS[kind]
    if isinstance(partial, entry.model):
        model = partial
    else:
        if isinstance(partial, BaseModel):
            partial = partial.model_dump(by_alias=True, exclude_unset=True)
        try:
            model = entry.model.model_validate(partial)
        except ValidationError as e:
            raise DocumentValidationError.from_pydantic(e, f"Failed to update {entry.label}")
    fields = model.model_dump(by_alias=True, exclude_unset=True)
    if kind is SingletonKind.HOMEPAGE:
        # sliders and testimonials are stored with every text field filled in
        for key in ("sliders", "testimonials"):
            if fields.get(key) is not None:
                fields[key] = [item.model_dump(by_alias=True, exclude_none=True) for item in getattr(model, key)]
        block = fields.get("products")
        if block and "products" in block:
            block["products"] = [ObjectId(pid) for pid in block["products"]]
    return fields


def upsert_singleton(db: Database, cache: PageCache, kind: SingletonKind, partial) -> Dict[str, Any]:
    entry = SINGLETONS[kind]
    fields = validate_partial(kind, partial)
    now = utcnow()
    fields["updated_at"] = now
    with store_errors(f"update {entry.label}"):
        stored = db.collection(entry.collection).find_one_and_update(
            {"_id": entry.doc_id},
            {"$set": fields, "$setOnInsert": {"created_at": now}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
    logger.info("Updated %s (%s)", entry.label, ", ".join(k for k in fields if k != "updated_at") or "no fields")
    cache.invalidate(entry.paths)
    return serialize_doc(stored)


def get_singleton(db: Database, kind: SingletonKind) -> Dict[str, Any]:
    """The stored document, or {} when it was never written."""
    entry = SINGLETONS[kind]
    with store_errors(f"fetch {entry.label}"):
        stored = db.collection(entry.collection).find_one({"_id": entry.doc_id})
    if not stored:
        return {}
    if kind is SingletonKind.HOMEPAGE:
        block = stored.get("products")
        if isinstance(block, dict) and block.get("products"):
            block["products"] = populate_products(db, block["products"])
    return serialize_doc(stored)


def reset_singleton(db: Database, cache: PageCache, kind: SingletonKind) -> bool:
    entry = SINGLETONS[kind]
    with store_errors(f"reset {entry.label}"):
        result = db.collection(entry.collection).delete_one({"_id": entry.doc_id})
    existed = result.deleted_count > 0
    logger.info("Reset %s (existed=%s)", entry.label, existed)
    cache.invalidate(entry.paths)
    return existed


def populate_products(db: Database, ids: List[Any]) -> List[Dict[str, Any]]:
    """Resolve product ids to product records, keeping the given order.

    Ids that no longer resolve (the product was deleted) or are malformed
    are dropped; a dangling reference is not an error.
    """
    oids = []
    for pid in ids:
        if isinstance(pid, ObjectId):
            oids.append(pid)
        elif ObjectId.is_valid(pid):
            oids.append(ObjectId(pid))
    if not oids:
        return []
    docs = db.get_documents(database.PRODUCTS, {"_id": {"$in": oids}})
    by_id = {doc["_id"]: doc for doc in docs}
    resolved = [serialize_doc(by_id[oid]) for oid in oids if oid in by_id]
    missing = len(ids) - len(resolved)
    if missing:
        logger.warning("Dropped %d unresolved product reference(s) from homepage", missing)
    return resolved


def singleton_status(db: Database) -> Dict[str, bool]:
    status = {}
    for kind, entry in SINGLETONS.items():
        with store_errors(f"fetch {entry.label}"):
            status[kind.value] = db.collection(entry.collection).count_documents({"_id": entry.doc_id}) > 0
    return status

"""Product catalog: the one regular (many-document) collection."""

import logging
from typing import Any, Dict, List, Union

from bson import ObjectId
from pydantic import BaseModel, ValidationError
from pymongo import ReturnDocument

import database
from database import Database, serialize_doc, store_errors, utcnow
from errors import DocumentValidationError, NotFoundError
from revalidate import PageCache
from schemas import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

LIST_PATHS = ("/", "/products", "/dashboard/products")


def detail_paths(product_id: str):
    product_id = canonical_id(product_id)
    return (f"/products/{product_id}", f"/dashboard/products/{product_id}")


def _object_id(product_id: str) -> ObjectId:
    if not ObjectId.is_valid(product_id):
        raise NotFoundError("Product not found")
    return ObjectId(product_id)


def canonical_id(product_id: str) -> str:
    """Lowercase hex form of a product id; raises NotFoundError if malformed."""
    return str(_object_id(product_id))


def _validate(model, data: Union[BaseModel, Dict[str, Any]], action: str):
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True, exclude_unset=True)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise DocumentValidationError.from_pydantic(e, f"Failed to {action} product")


def list_products(db: Database) -> List[Dict[str, Any]]:
    """All products, newest first."""
    return [serialize_doc(doc) for doc in db.newest_first(database.PRODUCTS)]


def get_product(db: Database, product_id: str) -> Dict[str, Any]:
    oid = _object_id(product_id)
    with store_errors("fetch product"):
        doc = db.products.find_one({"_id": oid})
    if not doc:
        raise NotFoundError("Product not found")
    return serialize_doc(doc)


def create_product(db: Database, cache: PageCache, data) -> Dict[str, Any]:
    payload = _validate(ProductCreate, data, "create")
    new_id = db.create_document(database.PRODUCTS, payload)
    logger.info("Created product %s (%s)", new_id, payload.title)
    cache.invalidate(LIST_PATHS)
    return get_product(db, new_id)


def update_product(db: Database, cache: PageCache, product_id: str, data) -> Dict[str, Any]:
    oid = _object_id(product_id)
    payload = _validate(ProductUpdate, data, "update")
    fields = payload.model_dump(by_alias=True, exclude_unset=True)
    fields["updated_at"] = utcnow()
    with store_errors("update product"):
        doc = db.products.find_one_and_update(
            {"_id": oid},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
    if not doc:
        raise NotFoundError("Product not found")
    logger.info("Updated product %s", product_id)
    cache.invalidate(LIST_PATHS + detail_paths(product_id))
    return serialize_doc(doc)


def delete_product(db: Database, cache: PageCache, product_id: str) -> None:
    """Delete a product.

    The home page keeps any reference to it; `content.populate_products`
    drops the dangling id when the home page is read.
    """
    oid = _object_id(product_id)
    with store_errors("delete product"):
        result = db.products.delete_one({"_id": oid})
    if result.deleted_count == 0:
        raise NotFoundError("Product not found")
    logger.info("Deleted product %s", product_id)
    cache.invalidate(LIST_PATHS + detail_paths(product_id) + ("/dashboard", "/dashboard/homepage"))


def count_products(db: Database) -> int:
    with store_errors("count products"):
        return db.products.count_documents({})

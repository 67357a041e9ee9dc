"""
DocGate — Collection Service
==============================

What:  The operations behind every /collections endpoint: list, sorted list,
       get, insert, insert order, delete, update, update order.
How:   Each method parses what it needs from the path/body, performs exactly
       one Motor call on the collection handle it is given, and turns the
       driver result into a response payload or an application exception.
Who:   Called by the route handlers in routes/collections.py and routes/orders.py.

Error translation:
    PyMongoError on insert/update/delete/list-all → DatabaseError with a generic
    message (driver text kept in the context, logged by the global handler).
    Sorted list and get-by-id let driver errors propagate untouched, including
    bson's InvalidId for malformed identifiers, which the catch-all handler
    answers with 500.

The service is stateless apart from the not-found policy; the collection
handle arrives with each call.
"""

import logging
import math
import re
from typing import Any, Dict, List, Optional

from bson import Decimal128, ObjectId
from bson.errors import InvalidId
from fastapi.encoders import jsonable_encoder
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from docgate.config import settings
from docgate.exceptions import DatabaseError, NotFoundError, ValidationError
from docgate.schemas.document import (
    InsertResponse,
    InsertResult,
    OrderUpdateResponse,
    StatusMessage,
    UpdateResult,
)

logger = logging.getLogger(__name__)

DESCENDING_TOKEN = "desc"

# Largest value a BSON int64 limit can carry
MAX_LIMIT = 2**63 - 1

LIMIT_PATTERN = re.compile(r"^\s*[+-]?[0-9]+\s*$")

# BSON types that FastAPI's encoder does not know about
BSON_ENCODERS = {
    ObjectId: str,
    Decimal128: str,
}


def to_jsonable(document: Dict[str, Any]) -> Dict[str, Any]:
    """Render a stored document as JSON-safe data, keeping key order."""
    return jsonable_encoder(
        document,
        custom_encoder=BSON_ENCODERS,
        sqlalchemy_safe=False,
    )


def parse_limit(raw: str) -> int:
    """
    Parse the ``max`` path segment.

    Accepts ASCII base-10 integers from 0 up to the int64 maximum. Anything
    else is a client error rather than an unbounded or driver-defined query.
    """
    if not LIMIT_PATTERN.match(raw):
        raise ValidationError(
            message=f"'max' must be a whole number, got '{raw}'",
            field="max",
        )
    value = int(raw)
    if value < 0:
        raise ValidationError(
            message=f"'max' must not be negative, got {value}",
            field="max",
        )
    if value > MAX_LIMIT:
        raise ValidationError(
            message=f"'max' must not exceed {MAX_LIMIT}, got {value}",
            field="max",
        )
    return value


def ensure_finite(value: Any, path: str = "") -> None:
    """
    Reject NaN and +/-Infinity anywhere in a request body.

    Python's JSON parser accepts these literals; they are not JSON, and
    BSON would store them as values that render back as null.
    """
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(
            message=f"Non-finite number at '{path or 'body'}'",
            field=path or None,
        )
    if isinstance(value, dict):
        for key, item in value.items():
            ensure_finite(item, f"{path}.{key}" if path else str(key))
    elif isinstance(value, list):
        for index, item in enumerate(value):
            ensure_finite(item, f"{path}[{index}]")


def parse_direction(raw: str) -> int:
    """Only the exact token "desc" sorts descending."""
    return DESCENDING if raw == DESCENDING_TOKEN else ASCENDING


def validate_order(order: Dict[str, Any]) -> None:
    """
    Presence checks for a new order.

    Raises:
        ValidationError: naming the first offending field.
    """
    for field in ("name", "phoneNumber"):
        if not order.get(field):
            raise ValidationError(message="Invalid order data", field=field)

    lesson_ids = order.get("lessonIDs")
    if not isinstance(lesson_ids, list) or not lesson_ids:
        raise ValidationError(message="Invalid order data", field="lessonIDs")

    if not order.get("spaces"):
        raise ValidationError(message="Invalid order data", field="spaces")


class CollectionService:
    """
    Document operations over an arbitrary collection.

    Args:
        strict_not_found: answer missing documents on the generic get/delete/
            update endpoints with NotFoundError (404) instead of a 200 body.
            None defers to ``settings.strict_not_found`` at call time.
    """

    def __init__(self, strict_not_found: Optional[bool] = None):
        self._strict_not_found = strict_not_found

    @property
    def strict_not_found(self) -> bool:
        if self._strict_not_found is None:
            return settings.strict_not_found
        return self._strict_not_found

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_documents(self, collection: AsyncIOMotorCollection) -> List[Dict[str, Any]]:
        """Every document in the collection, in natural order."""
        try:
            documents = await collection.find({}).to_list(length=None)
        except PyMongoError as e:
            raise DatabaseError(
                message="Error retrieving data",
                context={"collection": collection.name, "original_error": str(e)},
            ) from e

        if not documents:
            logger.info("No documents found in collection '%s'", collection.name)
        return [to_jsonable(document) for document in documents]

    async def list_sorted(
        self,
        collection: AsyncIOMotorCollection,
        max_count: str,
        sort_field: str,
        direction: str,
    ) -> List[Dict[str, Any]]:
        """
        At most ``max_count`` documents ordered by ``sort_field``.

        Documents lacking the field sort as MongoDB orders missing values
        (before everything else when ascending).
        """
        limit = parse_limit(max_count)
        order = parse_direction(direction)
        # limit(0) means "no limit" to MongoDB
        if limit == 0:
            return []

        cursor = collection.find({}).sort(sort_field, order).limit(limit)
        documents = await cursor.to_list(length=None)
        return [to_jsonable(document) for document in documents]

    async def get_document(
        self,
        collection: AsyncIOMotorCollection,
        document_id: str,
    ) -> Optional[Dict[str, Any]]:
        """
        The document with ``_id == ObjectId(document_id)``, or None.

        Raises:
            bson.errors.InvalidId: ``document_id`` is not an ObjectId string.
            NotFoundError: no match and strict_not_found is on.
        """
        document = await collection.find_one({"_id": ObjectId(document_id)})
        if document is None:
            if self.strict_not_found:
                raise NotFoundError(resource="document", resource_id=document_id)
            return None
        return to_jsonable(document)

    # ── Writes ────────────────────────────────────────────────────────────

    async def insert_document(
        self,
        collection: AsyncIOMotorCollection,
        body: Dict[str, Any],
        message: str = "Document inserted",
        failure_message: str = "Failed to insert document",
    ) -> InsertResponse:
        """Insert ``body`` as-is; MongoDB assigns the ``_id``."""
        ensure_finite(body)
        logger.debug("Inserting into '%s': %d fields", collection.name, len(body))
        try:
            result = await collection.insert_one(body)
        except PyMongoError as e:
            raise DatabaseError(
                message=failure_message,
                context={"collection": collection.name, "original_error": str(e)},
            ) from e

        logger.info("Inserted %s into '%s'", result.inserted_id, collection.name)
        return InsertResponse(
            message=message,
            result=InsertResult(
                acknowledged=result.acknowledged,
                inserted_id=str(result.inserted_id),
            ),
        )

    async def insert_order(
        self,
        collection: AsyncIOMotorCollection,
        body: Dict[str, Any],
    ) -> InsertResponse:
        """Validate, then insert like any other document."""
        validate_order(body)
        return await self.insert_document(
            collection,
            body,
            message="Order successfully placed",
            failure_message="Failed to place order",
        )

    async def delete_document(
        self,
        collection: AsyncIOMotorCollection,
        document_id: str,
    ) -> StatusMessage:
        try:
            result = await collection.delete_one({"_id": ObjectId(document_id)})
        except (InvalidId, PyMongoError) as e:
            raise DatabaseError(
                message="Failed to delete document",
                context={
                    "collection": collection.name,
                    "document_id": document_id,
                    "original_error": str(e),
                },
            ) from e

        if result.deleted_count == 1:
            return StatusMessage(msg="success")
        if self.strict_not_found:
            raise NotFoundError(resource="document", resource_id=document_id)
        return StatusMessage(msg="Document not found")

    async def update_document(
        self,
        collection: AsyncIOMotorCollection,
        document_id: str,
        body: Dict[str, Any],
    ) -> StatusMessage:
        """Merge the fields of ``body`` into the document ($set)."""
        ensure_finite(body)
        try:
            result = await collection.update_one(
                {"_id": ObjectId(document_id)},
                {"$set": body},
            )
        except (InvalidId, PyMongoError) as e:
            raise DatabaseError(
                message="Failed to update document",
                context={
                    "collection": collection.name,
                    "document_id": document_id,
                    "original_error": str(e),
                },
            ) from e

        if result.matched_count == 1:
            return StatusMessage(msg="success")
        if self.strict_not_found:
            raise NotFoundError(resource="document", resource_id=document_id)
        return StatusMessage(msg="Document not found")

    async def update_order(
        self,
        collection: AsyncIOMotorCollection,
        document_id: str,
        body: Dict[str, Any],
    ) -> OrderUpdateResponse:
        """
        $set merge on an order.

        Raises:
            ValidationError: empty body or a non-finite number (checked
                before touching the store).
            NotFoundError: no order has this id.
            DatabaseError: driver failure or malformed id.
        """
        if not body:
            raise ValidationError(message="No fields to update")
        ensure_finite(body)

        try:
            result = await collection.update_one(
                {"_id": ObjectId(document_id)},
                {"$set": body},
            )
        except (InvalidId, PyMongoError) as e:
            raise DatabaseError(
                message="Failed to update order",
                context={
                    "collection": collection.name,
                    "document_id": document_id,
                    "original_error": str(e),
                },
            ) from e

        if result.matched_count == 0:
            raise NotFoundError(resource="order", resource_id=document_id)

        return OrderUpdateResponse(
            result=UpdateResult(
                acknowledged=result.acknowledged,
                matched_count=result.matched_count,
                modified_count=result.modified_count,
            ),
        )


collection_service = CollectionService()

"""
DocGate — Orders Route Handlers
=================================

What:  The two endpoints with order-specific rules:
       POST /collections/orders       presence validation before insert
       PUT  /collections/orders/{id}  empty body → 400, unknown id → 404
How:   Same shape as the generic handlers; the paths overlap with
       /collections/{name}[/{document_id}], and the route table is ordered so
       these literal paths win (see routes/__init__.py).
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from motor.motor_asyncio import AsyncIOMotorCollection

from docgate.database import ORDERS_COLLECTION, get_orders_collection
from docgate.schemas.document import ErrorResponse, InsertResponse, OrderUpdateResponse
from docgate.services.collection_service import collection_service

router = APIRouter(prefix=f"/collections/{ORDERS_COLLECTION}", tags=["Orders"])


@router.post(
    "",
    status_code=201,
    response_model=InsertResponse,
    summary="Place an order",
    description=(
        "Requires non-empty `name` and `phoneNumber`, a non-empty `lessonIDs` "
        "list and a truthy `spaces`. Invalid orders are rejected before the "
        "database is touched."
    ),
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def insert_order(
    body: Dict[str, Any] = Body(...),
    collection: AsyncIOMotorCollection = Depends(get_orders_collection),
) -> InsertResponse:
    return await collection_service.insert_order(collection, body)


@router.put(
    "/{document_id}",
    response_model=OrderUpdateResponse,
    summary="Merge fields into an order",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def update_order(
    document_id: str,
    body: Dict[str, Any] = Body(...),
    collection: AsyncIOMotorCollection = Depends(get_orders_collection),
) -> OrderUpdateResponse:
    return await collection_service.update_order(collection, document_id, body)

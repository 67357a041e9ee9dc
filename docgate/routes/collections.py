"""
DocGate — Generic Collection Route Handlers
=============================================

What:  CRUD endpoints for any collection addressed as /collections/{name}.
How:   The get_collection dependency resolves {name} into a Motor collection
       (or fails with 500 when the database is not connected); each handler
       then delegates to CollectionService, which makes one driver call.

Route Inventory:
    GET    /collections/{name}                              list all
    GET    /collections/{name}/{limit}/{sort_field}/{direction}   list limited + sorted
    GET    /collections/{name}/{document_id}                fetch one
    POST   /collections/{name}                              insert
    DELETE /collections/{name}/{document_id}                delete one
    PUT    /collections/{name}/{document_id}                partial update ($set)
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends
from motor.motor_asyncio import AsyncIOMotorCollection

from docgate.database import get_collection
from docgate.schemas.document import ErrorResponse, InsertResponse, StatusMessage
from docgate.services.collection_service import collection_service

router = APIRouter(prefix="/collections", tags=["Collections"])


@router.get(
    "/{name}",
    summary="List every document in a collection",
    responses={500: {"model": ErrorResponse}},
)
async def list_documents(
    collection: AsyncIOMotorCollection = Depends(get_collection),
) -> List[Dict[str, Any]]:
    return await collection_service.list_documents(collection)


@router.get(
    "/{name}/{limit}/{sort_field}/{direction}",
    summary="List at most `limit` documents sorted by a field",
    description=(
        "`direction` 'desc' sorts descending; any other value sorts ascending. "
        "`limit` must be a non-negative whole number."
    ),
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def list_sorted_documents(
    limit: str,
    sort_field: str,
    direction: str,
    collection: AsyncIOMotorCollection = Depends(get_collection),
) -> List[Dict[str, Any]]:
    return await collection_service.list_sorted(collection, limit, sort_field, direction)


@router.get(
    "/{name}/{document_id}",
    summary="Fetch one document by identifier",
    description="Returns `null` when no document has this identifier.",
    responses={500: {"model": ErrorResponse}},
)
async def get_document(
    document_id: str,
    collection: AsyncIOMotorCollection = Depends(get_collection),
) -> Optional[Dict[str, Any]]:
    return await collection_service.get_document(collection, document_id)


@router.post(
    "/{name}",
    status_code=201,
    response_model=InsertResponse,
    summary="Insert a document",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def insert_document(
    body: Dict[str, Any] = Body(...),
    collection: AsyncIOMotorCollection = Depends(get_collection),
) -> InsertResponse:
    return await collection_service.insert_document(collection, body)


@router.delete(
    "/{name}/{document_id}",
    response_model=StatusMessage,
    summary="Delete one document by identifier",
    responses={500: {"model": ErrorResponse}},
)
async def delete_document(
    document_id: str,
    collection: AsyncIOMotorCollection = Depends(get_collection),
) -> StatusMessage:
    return await collection_service.delete_document(collection, document_id)


@router.put(
    "/{name}/{document_id}",
    response_model=StatusMessage,
    summary="Merge fields into a document",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def update_document(
    document_id: str,
    body: Dict[str, Any] = Body(...),
    collection: AsyncIOMotorCollection = Depends(get_collection),
) -> StatusMessage:
    return await collection_service.update_document(collection, document_id, body)

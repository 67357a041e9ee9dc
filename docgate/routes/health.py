"""
DocGate — Index and Health Check Routes
=========================================

What:  GET /        plain-text pointer to the collection URLs
       GET /health  service status with a MongoDB ping
Who:   Humans poking the service, Docker health checks, load balancers.

Status levels:
    - healthy:   the ping succeeded (HTTP 200)
    - unhealthy: not connected or the ping failed (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from docgate import __version__
from docgate.database import DocumentStore, get_store
from docgate.responses import IndentedJSONResponse
from docgate.schemas.document import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

INDEX_MESSAGE = "Select a collection, e.g., /collections/products"

_start_time = time.time()


@router.get("/", response_class=PlainTextResponse, summary="Usage hint")
async def index() -> str:
    return INDEX_MESSAGE


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"model": HealthResponse}},
)
async def health_check(store: DocumentStore = Depends(get_store)):
    """
    Ping MongoDB and report.

    The ping is the cheapest round trip the server offers, so running this
    every few seconds costs nothing noticeable.
    """
    connected = store.is_connected and await store.ping()
    if not connected:
        logger.warning("Health check: database unreachable")

    health = HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        database="connected" if connected else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if connected:
        return health
    return IndentedJSONResponse(status_code=503, content=health.model_dump())

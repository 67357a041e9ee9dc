"""
DocGate — API Routes Package
==============================

Route Inventory:
    - health.py:       GET /, GET /health
    - collections.py:  /collections/{name}[...]          generic CRUD
    - orders.py:       /collections/orders[/{id}]        validated order writes

Route ordering:
    Starlette tries routes in table order and takes the first full match.
    /collections/orders and /collections/{name} both match a POST to
    /collections/orders, so after all routers are included the table is
    sorted: among paths of the same depth, a literal segment comes before a
    parameter at the first position where they differ. The sort is stable,
    so unrelated routes keep their inclusion order.
"""

from typing import List, Optional, Sequence

from fastapi import APIRouter, FastAPI
from starlette.routing import BaseRoute

from docgate.routes import collections, health, orders


def route_specificity(route: BaseRoute) -> List[int]:
    path = getattr(route, "path", "")
    return [
        1 if segment.startswith("{") else 0
        for segment in path.strip("/").split("/")
    ]


ROUTERS = (health.router, collections.router, orders.router)


def register_routes(app: FastAPI, routers: Optional[Sequence[APIRouter]] = None) -> None:
    for router in routers or ROUTERS:
        app.include_router(router)
    app.router.routes.sort(key=route_specificity)

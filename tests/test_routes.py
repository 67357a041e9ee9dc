"""
DocGate — HTTP Endpoint Tests
===============================

What:  End-to-end tests of the routes, resolver, exception handlers and
       route ordering through the ASGI app, with a mongomock-motor
       client behind the DocumentStore.
"""

import logging
import re

import pytest
from bson import ObjectId
from fastapi import FastAPI

from docgate.config import settings
from docgate.main import NOT_FOUND_MESSAGE
from docgate.routes import collections as collection_routes
from docgate.routes import orders as order_routes
from docgate.routes import register_routes, route_specificity


class TestIndexAndHealth:

    @pytest.mark.asyncio
    async def test_index_message(self, test_client):
        response = await test_client.get("/")
        assert response.status_code == 200
        assert response.text == "Select a collection, e.g., /collections/products"

    @pytest.mark.asyncio
    async def test_health_connected(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    @pytest.mark.asyncio
    async def test_health_disconnected(self, test_client, store):
        store.close()
        response = await test_client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_unsafe_request_id_replaced(self, test_client):
        response = await test_client.get("/", headers={"X-Request-ID": "two words"})
        assert re.fullmatch(r"[0-9a-f]{8}", response.headers["X-Request-ID"])


class TestAccessLog:

    @pytest.mark.asyncio
    async def test_one_short_line_per_request(self, test_client, caplog):
        caplog.set_level(logging.INFO, logger="docgate.access")

        await test_client.get(
            "/collections/products/2/price/desc?page=1",
            headers={"X-Request-ID": "abc123"},
        )

        records = [r for r in caplog.records if r.name == "docgate.access"]
        assert len(records) == 1
        assert records[0].levelno == logging.INFO
        message = records[0].getMessage()
        assert message.startswith(
            "[abc123] 127.0.0.1 - GET /collections/products/2/price/desc?page=1 HTTP/1.1 200 "
        )
        assert message.endswith(" ms")

    @pytest.mark.asyncio
    async def test_client_errors_logged_as_warning(self, test_client, caplog):
        caplog.set_level(logging.INFO, logger="docgate.access")

        await test_client.get("/nothing/here")

        records = [r for r in caplog.records if r.name == "docgate.access"]
        assert records[-1].levelno == logging.WARNING
        assert " 404 " in records[-1].getMessage()


class TestCollections:

    @pytest.mark.asyncio
    async def test_insert_then_get(self, test_client):
        response = await test_client.post(
            "/collections/products", json={"title": "Widget", "price": 9.99}
        )
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Document inserted"
        inserted_id = body["result"]["insertedId"]

        response = await test_client.get(f"/collections/products/{inserted_id}")

        assert response.status_code == 200
        assert response.json() == {"title": "Widget", "price": 9.99, "_id": inserted_id}

    @pytest.mark.asyncio
    async def test_underscore_fields_round_trip(self, test_client):
        payload = {"title": "Widget", "_sale": True, "_sample": {"_savings": 3}}
        response = await test_client.post("/collections/products", json=payload)
        inserted_id = response.json()["result"]["insertedId"]

        response = await test_client.get(f"/collections/products/{inserted_id}")

        assert response.json() == {**payload, "_id": inserted_id}

    @pytest.mark.asyncio
    async def test_insert_rejects_nan(self, test_client, products):
        response = await test_client.post(
            "/collections/products",
            content=b'{"value": NaN}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "value"
        assert await products.count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_update_rejects_infinity(self, test_client, products):
        inserted = await products.insert_one({"value": 1})

        response = await test_client.put(
            f"/collections/products/{inserted.inserted_id}",
            content=b'{"value": -Infinity}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert (await products.find_one({}))["value"] == 1

    @pytest.mark.asyncio
    async def test_list_empty_collection(self, test_client):
        response = await test_client.get("/collections/lessons")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_list_all(self, test_client, products):
        await products.insert_one({"title": "A"})
        await products.insert_one({"title": "B"})

        response = await test_client.get("/collections/products")

        assert [d["title"] for d in response.json()] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_response_is_pretty_printed(self, test_client, products):
        await products.insert_one({"title": "A"})
        response = await test_client.get("/collections/products")
        assert response.text.startswith("[\n   {")

    @pytest.mark.asyncio
    async def test_sorted_desc_respects_limit(self, test_client, products):
        for price in (4, 8, 15, 16, 23, 42):
            await products.insert_one({"price": price})

        response = await test_client.get("/collections/products/4/price/desc")

        prices = [d["price"] for d in response.json()]
        assert prices == [42, 23, 16, 15]
        assert all(a >= b for a, b in zip(prices, prices[1:]))

    @pytest.mark.asyncio
    async def test_sorted_asc(self, test_client, products):
        for price in (4, 8, 15):
            await products.insert_one({"price": price})

        response = await test_client.get("/collections/products/2/price/asc")

        assert [d["price"] for d in response.json()] == [4, 8]

    @pytest.mark.asyncio
    async def test_sorted_non_numeric_max(self, test_client):
        response = await test_client.get("/collections/products/many/price/desc")
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "max"

    @pytest.mark.asyncio
    async def test_sorted_max_beyond_int64(self, test_client):
        response = await test_client.get(f"/collections/products/{2**63}/price/desc")
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "max"

    @pytest.mark.asyncio
    async def test_get_missing_returns_null(self, test_client):
        response = await test_client.get(f"/collections/products/{ObjectId()}")
        assert response.status_code == 200
        assert response.json() is None

    @pytest.mark.asyncio
    async def test_get_missing_strict(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "strict_not_found", True)
        response = await test_client.get(f"/collections/products/{ObjectId()}")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_get_malformed_id_is_server_error(self, test_client):
        response = await test_client.get("/collections/products/not-an-id")
        assert response.status_code == 500
        assert response.json()["error"] == "internal_server_error"

    @pytest.mark.asyncio
    async def test_insert_rejects_non_object_body(self, test_client, products):
        response = await test_client.post("/collections/products", json=[1, 2, 3])
        assert response.status_code == 400
        assert await products.count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_delete_then_get(self, test_client, products):
        inserted = await products.insert_one({"title": "Widget"})
        doc_id = str(inserted.inserted_id)

        response = await test_client.delete(f"/collections/products/{doc_id}")
        assert response.json() == {"msg": "success"}

        response = await test_client.get(f"/collections/products/{doc_id}")
        assert response.json() is None

    @pytest.mark.asyncio
    async def test_delete_missing_same_status(self, test_client):
        response = await test_client.delete(f"/collections/products/{ObjectId()}")
        assert response.status_code == 200
        assert response.json() == {"msg": "Document not found"}

    @pytest.mark.asyncio
    async def test_delete_malformed_id(self, test_client):
        response = await test_client.delete("/collections/products/nope")
        assert response.status_code == 500
        assert response.json()["message"] == "Failed to delete document"

    @pytest.mark.asyncio
    async def test_update_partial_and_idempotent(self, test_client, products):
        inserted = await products.insert_one({"title": "Widget", "price": 9.99})
        doc_id = str(inserted.inserted_id)

        for _ in range(2):
            response = await test_client.put(
                f"/collections/products/{doc_id}", json={"price": 11}
            )
            assert response.json() == {"msg": "success"}

        response = await test_client.get(f"/collections/products/{doc_id}")
        assert response.json() == {"title": "Widget", "price": 11, "_id": doc_id}

    @pytest.mark.asyncio
    async def test_update_missing(self, test_client):
        response = await test_client.put(
            f"/collections/products/{ObjectId()}", json={"price": 11}
        )
        assert response.status_code == 200
        assert response.json() == {"msg": "Document not found"}


class TestOrders:

    @pytest.mark.asyncio
    async def test_valid_order_created(self, test_client, orders, valid_order):
        response = await test_client.post("/collections/orders", json=valid_order)

        assert response.status_code == 201
        assert response.json()["message"] == "Order successfully placed"
        assert await orders.count_documents({}) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["name", "phoneNumber", "lessonIDs", "spaces"])
    async def test_invalid_order_rejected(self, test_client, orders, valid_order, field):
        del valid_order[field]

        response = await test_client.post("/collections/orders", json=valid_order)

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid order data"
        assert await orders.count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_orders_listed_by_generic_route(self, test_client, orders, valid_order):
        await orders.insert_one(valid_order)
        response = await test_client.get("/collections/orders")
        assert len(response.json()) == 1

    @pytest.mark.asyncio
    async def test_update_missing_order_is_404(self, test_client):
        response = await test_client.put(
            f"/collections/orders/{ObjectId()}", json={"spaces": 2}
        )
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_update_order_empty_body(self, test_client):
        response = await test_client.put(f"/collections/orders/{ObjectId()}", json={})
        assert response.status_code == 400
        assert response.json()["message"] == "No fields to update"

    @pytest.mark.asyncio
    async def test_update_order_success(self, test_client, orders, valid_order):
        inserted = await orders.insert_one(valid_order)

        response = await test_client.put(
            f"/collections/orders/{inserted.inserted_id}", json={"spaces": 3}
        )

        assert response.status_code == 200
        assert response.json()["result"] == {
            "acknowledged": True,
            "matchedCount": 1,
            "modifiedCount": 1,
        }


class TestResolverAndFallbacks:

    @pytest.mark.asyncio
    async def test_disconnected_store_fails_before_handler(self, test_client, store, database):
        store.close()

        response = await test_client.post("/collections/products", json={"a": 1})

        assert response.status_code == 500
        assert response.json()["message"] == "Database not connected"
        assert "products" not in await database.list_collection_names()

    @pytest.mark.asyncio
    async def test_unknown_path(self, test_client):
        response = await test_client.get("/nothing/here")
        assert response.status_code == 404
        assert response.text == NOT_FOUND_MESSAGE

    @pytest.mark.asyncio
    async def test_unsupported_method(self, test_client):
        response = await test_client.patch("/collections/products", json={})
        assert response.status_code == 404
        assert response.text == NOT_FOUND_MESSAGE


class TestRouteOrdering:

    def test_literal_segment_sorts_first(self):
        class R:
            def __init__(self, path):
                self.path = path

        routes = [R("/collections/{name}"), R("/collections/orders")]
        routes.sort(key=route_specificity)
        assert [r.path for r in routes] == ["/collections/orders", "/collections/{name}"]

    @pytest.mark.asyncio
    async def test_orders_route_wins_in_default_table(self, app):
        self.assert_orders_first(app)

    def test_orders_route_wins_when_included_first(self):
        app = FastAPI()
        register_routes(app, routers=[order_routes.router, collection_routes.router])
        self.assert_orders_first(app)

    def test_orders_route_wins_when_included_last(self):
        app = FastAPI()
        register_routes(app, routers=[collection_routes.router, order_routes.router])
        self.assert_orders_first(app)

    @staticmethod
    def assert_orders_first(app):
        paths = [getattr(r, "path", "") for r in app.router.routes]
        assert paths.index("/collections/orders") < paths.index("/collections/{name}")
        assert paths.index("/collections/orders/{document_id}") < paths.index(
            "/collections/{name}/{document_id}"
        )

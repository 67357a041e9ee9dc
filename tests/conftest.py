"""
DocGate — Test Configuration (conftest.py)
============================================

What:  Shared pytest fixtures for the entire test suite.
How:   The DocumentStore under test is the real one; only its Motor client is
       swapped for mongomock-motor's in-memory AsyncMongoMockClient, so
       sorting, $set merges and result counts follow mongomock's MongoDB
       semantics. No server is needed.

Fixtures:
    ├── mongo_client:  AsyncMongoMockClient, fresh per test
    ├── store:         DocumentStore connected to mongo_client
    ├── app:           create_app(store=store)
    └── test_client:   HTTPX AsyncClient wired to the app over ASGITransport
"""

import os

# Must happen before docgate.config is imported anywhere
os.environ["DB_PROPERTIES_FILE"] = os.path.join(os.path.dirname(__file__), "no-such.properties")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from docgate.database import DocumentStore

TEST_DATABASE = "docgate_test"


@pytest.fixture
def mongo_client():
    return AsyncMongoMockClient()


@pytest.fixture
def unconnected_store(mongo_client, monkeypatch):
    """A DocumentStore whose connect() will open mongo_client."""
    monkeypatch.setattr(
        "docgate.database.AsyncIOMotorClient",
        lambda *args, **kwargs: mongo_client,
    )
    return DocumentStore("mongodb://localhost:27017/", TEST_DATABASE)


@pytest_asyncio.fixture
async def store(unconnected_store):
    await unconnected_store.connect()
    return unconnected_store


@pytest.fixture
def database(mongo_client):
    """Direct handle for arranging and inspecting data behind the app's back."""
    return mongo_client[TEST_DATABASE]


@pytest.fixture
def products(store):
    return store.collection("products")


@pytest.fixture
def orders(store):
    return store.collection("orders")


@pytest.fixture
def valid_order():
    return {
        "name": "Ada Lovelace",
        "phoneNumber": "07123456789",
        "lessonIDs": ["65a1f0c2e4b0a1b2c3d4e5f6"],
        "spaces": 2,
    }


@pytest.fixture
def app(store):
    from docgate.main import create_app
    return create_app(store=store)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    raise_app_exceptions=False lets the catch-all 500 handler's response
    through instead of re-raising the original exception in the test.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

import mongomock
import pytest

from triposia.tests.fixtures import mongo_documents
from triposia.utils import mongodb


@pytest.fixture
def mongo_client() -> mongomock.MongoClient:
    return mongomock.MongoClient()


@pytest.fixture
def mongo_db(mongo_client, settings):
    return mongo_client[settings.MONGODB_DATABASE]


@pytest.fixture(autouse=True)
def mock_mongodb(monkeypatch, mongo_client):
    """
    Replace the MongoDB client with an in-memory mongomock client.
    Nothing in the test suite talks to a real server.
    """
    monkeypatch.setattr(mongodb, "get_client", lambda: mongo_client)
    return mongo_client


@pytest.fixture
def flights_db(mongo_db):
    """Database seeded with airlines, airports, routes and departures."""
    mongo_db.airlines.insert_many([dict(doc) for doc in mongo_documents.AIRLINE_DOCUMENTS])
    mongo_db.airports.insert_many([dict(doc) for doc in mongo_documents.AIRPORT_DOCUMENTS])
    mongo_db.routes.insert_many([dict(doc) for doc in mongo_documents.ROUTE_DOCUMENTS])
    mongo_db.departures.insert_many(
        [dict(doc) for doc in mongo_documents.DEPARTURE_DOCUMENTS],
    )
    return mongo_db

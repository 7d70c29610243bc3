import mongomock
import pytest
from fastapi.testclient import TestClient

from database import Database, get_database
from main import app
from revalidate import PageCache, get_page_cache

TEST_DB = "site_content_test"


@pytest.fixture
def db():
    database = Database("mongodb://localhost:27017", TEST_DB, client_factory=mongomock.MongoClient)
    yield database
    database.connect().client.drop_database(TEST_DB)
    database.close()


@pytest.fixture
def cache():
    return PageCache(ttl=60)


@pytest.fixture
def client(db, cache):
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_page_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()

# tests/conftest.py
"""Shared fixtures: every test runs against a fresh in-memory SQLite database."""
import os

import pytest

# The connection descriptor must exist before notes_function.db is imported.
for _name in ("NETLIFY_DATABASE_URL", "POSTGRES_URL"):
    os.environ.pop(_name, None)
os.environ["DATABASE_URL"] = "sqlite://"

from fastapi.testclient import TestClient  # noqa: E402

from notes_function.api.main import NOTES_ROUTE_PATH, app  # noqa: E402
from notes_function.db import Base, engine, get_database  # noqa: E402


@pytest.fixture
def database():
    yield get_database()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(database):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def notes_path():
    return NOTES_ROUTE_PATH

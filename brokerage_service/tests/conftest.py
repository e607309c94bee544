import uuid
from typing import Callable, Dict

import mongomock
import pytest
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from brokerage_service.app.config import settings
from brokerage_service.app.main import app
from brokerage_service.infrastructure.database.connection import get_db
from brokerage_service.tests.factories import ADMIN_KEY, ADMIN_PASSWORD, ADMIN_PHONE, bearer


# --- Awaitable facade over mongomock, covering the Motor calls the store makes ---

class AsyncCursor:
    def __init__(self, cursor):
        self._cursor = cursor

    def sort(self, *args, **kwargs):
        self._cursor = self._cursor.sort(*args, **kwargs)
        return self

    def skip(self, count):
        self._cursor = self._cursor.skip(count)
        return self

    def limit(self, count):
        self._cursor = self._cursor.limit(count)
        return self

    async def to_list(self, length=None):
        items = list(self._cursor)
        return items if length is None else items[:length]


class AsyncCollection:
    def __init__(self, collection):
        self.sync = collection

    def find(self, *args, **kwargs):
        return AsyncCursor(self.sync.find(*args, **kwargs))

    async def insert_one(self, document, *args, **kwargs):
        try:
            return self.sync.insert_one(document, *args, **kwargs)
        except DuplicateKeyError as e:
            # mongomock omits keyPattern; rebuild it from the unique index that clashed
            field = self._clashing_unique_field(document)
            if field is None:
                raise
            raise DuplicateKeyError(str(e), code=11000, details={"keyPattern": {field: 1}}) from e

    async def find_one_and_update(self, query, update, *args, upsert=False, **kwargs):
        # mongomock re-checks the filter against the updated document, so a filter on the
        # field being changed finds nothing; pin the match to its _id first
        match = self.sync.find_one(query, {"_id": 1})
        if match is None:
            if not upsert:
                return None
            return self.sync.find_one_and_update(query, update, *args, upsert=True, **kwargs)
        return self.sync.find_one_and_update({"_id": match["_id"]}, update, *args, **kwargs)

    def _clashing_unique_field(self, document):
        for index in self.sync.index_information().values():
            if not index.get("unique"):
                continue
            for field, _ in index["key"]:
                if field in document and self.sync.count_documents({field: document[field]}):
                    return field
        return None

    def __getattr__(self, name):
        method = getattr(self.sync, name)

        async def call(*args, **kwargs):
            return method(*args, **kwargs)
        return call


class AsyncDatabase:
    def __init__(self, database):
        self.sync = database

    def __getitem__(self, name):
        return AsyncCollection(self.sync[name])

    async def command(self, name, *args, **kwargs):
        return {"ok": 1.0}


# --- Fixtures ---

@pytest.fixture(autouse=True)
def fast_test_settings(monkeypatch):
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)
    monkeypatch.setattr(settings, "CODE_GENERATION_RETRY_BACKOFF_SECONDS", 0)
    monkeypatch.setattr(settings, "ADMIN_REGISTRATION_KEY", ADMIN_KEY)
    monkeypatch.setattr(settings, "JWT_SECRET", "test-jwt-secret-with-at-least-32-bytes")
    yield


@pytest.fixture
def mongo_db():
    client = mongomock.MongoClient()
    yield AsyncDatabase(client[settings.DB_NAME])
    client.close()


@pytest.fixture
def api_client(mongo_db):
    app.dependency_overrides[get_db] = lambda: mongo_db
    yield TestClient(app)
    app.dependency_overrides = {}


@pytest.fixture
def admin_headers(api_client) -> Dict[str, str]:
    response = api_client.post("/api/v1/auth/registeradmin", json={
        "name": "Test Admin",
        "phoneNumber": ADMIN_PHONE,
        "password": ADMIN_PASSWORD,
        "adminKey": ADMIN_KEY,
    })
    assert response.status_code == 201, response.text
    login = api_client.post("/api/v1/auth/login", json={"phoneNumber": ADMIN_PHONE, "password": ADMIN_PASSWORD})
    assert login.status_code == 200, login.text
    return bearer(login.json()["token"])


@pytest.fixture
def user_headers(api_client, admin_headers) -> Callable[[str], Dict[str, str]]:
    """Registers a staff user with the given role and returns its auth headers."""
    def make(role: str) -> Dict[str, str]:
        phone = "+2547" + str(uuid.uuid4().int)[:8]
        created = api_client.post("/api/v1/auth/register", headers=admin_headers, json={
            "name": f"{role} User",
            "phoneNumber": phone,
            "password": "staff-secret",
            "role": role,
        })
        assert created.status_code == 201, created.text
        login = api_client.post("/api/v1/auth/login", json={"phoneNumber": phone, "password": "staff-secret"})
        return bearer(login.json()["token"])
    return make

# tests/conftest.py
import os
import sys
import asyncio
import json
from urllib.parse import urlencode

import mongomock
import pytest

sys.path.append(os.path.abspath("."))

from gamereviews.core import get_settings
from gamereviews.database import Database, get_db
from main import app


# Store (mongomock in-memory for tests)
TEST_DATABASE_NAME = "gamereviews_test"


@pytest.fixture()
def db_session():
    database = Database(mongomock.MongoClient(), TEST_DATABASE_NAME)
    database.ensure_indexes()
    try:
        yield database
    finally:
        database.close()


# One event loop for the WHOLE pytest session
@pytest.fixture(scope="session")
def session_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture(scope="session", autouse=True)
def adjust_settings_env():
    settings = get_settings()
    settings.TOP_RATED_LIMIT = 6
    return settings


# Simple ASGI response/client
class SimpleResponse:
    def __init__(
        self, status_code: int, body: bytes, headers: list[tuple[bytes, bytes]]
    ):
        self.status_code = status_code
        self._body = body
        self.headers = {k.decode().lower(): v.decode() for k, v in headers}

    def json(self):
        return json.loads(self._body.decode())


class SimpleClient:
    """
    Important:
    - uses ONE shared session loop (passed from fixture)
    - does NOT run the startup handlers, the store comes from the override
    - does NOT close the loop
    """

    def __init__(self, app, loop):
        self.app = app
        self.loop = loop

    def close(self):
        # do not close the loop here (session fixture closes it)
        pass

    def request(
        self,
        method: str,
        path: str,
        json_body=None,
        params=None,
        headers=None,
    ):
        headers = headers or {}
        body_bytes = b""

        path, _, query_string = path.partition("?")
        if params:
            encoded = urlencode(params, doseq=True)
            query_string = f"{query_string}&{encoded}" if query_string else encoded

        if json_body is not None:
            body_bytes = json.dumps(json_body).encode()
            headers.setdefault("content-type", "application/json")

        raw_headers = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
        scope = {
            "type": "http",
            "method": method.upper(),
            "path": path,
            "headers": raw_headers,
            "query_string": query_string.encode(),
            "client": ("testclient", 5000),
        }

        async def receive():
            nonlocal body_bytes
            chunk, body_bytes = body_bytes, b""
            return {"type": "http.request", "body": chunk, "more_body": False}

        response_body = bytearray()
        response_status = 500
        response_headers: list[tuple[bytes, bytes]] = []

        async def send(message):
            nonlocal response_status, response_headers
            if message["type"] == "http.response.start":
                response_status = message["status"]
                response_headers = message.get("headers", [])
            elif message["type"] == "http.response.body":
                response_body.extend(message.get("body", b""))

        # ensure the loop is the current one
        asyncio.set_event_loop(self.loop)
        self.loop.run_until_complete(self.app(scope, receive, send))
        return SimpleResponse(response_status, bytes(response_body), response_headers)

    def get(self, path: str, params=None, headers=None):
        return self.request("GET", path, params=params, headers=headers)

    def post(self, path: str, json=None, headers=None):
        return self.request("POST", path, json_body=json, headers=headers)

    def put(self, path: str, json=None, headers=None):
        return self.request("PUT", path, json_body=json, headers=headers)

    def patch(self, path: str, json=None, headers=None):
        return self.request("PATCH", path, json_body=json, headers=headers)

    def delete(self, path: str, params=None, headers=None):
        return self.request("DELETE", path, params=params, headers=headers)


# Client fixture: override store dependency per test
@pytest.fixture()
def client(db_session, session_loop):
    def override_get_db():
        return db_session

    app.dependency_overrides[get_db] = override_get_db

    c = SimpleClient(app, loop=session_loop)
    try:
        yield c
    finally:
        app.dependency_overrides.clear()
        c.close()


def review_payload(**overrides):
    payload = {
        "title": "Hollow Knight",
        "image": "https://img.example.com/hk.png",
        "genre": "Metroidvania",
        "platform": "PC",
        "rating": 4.5,
        "description": "Tight combat and a haunting world.",
        "reviewerName": "Alice",
        "userEmail": "alice@example.com",
        "releaseYear": 2017,
        "publisher": "Team Cherry",
        "price": 14.99,
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def make_review():
    return review_payload

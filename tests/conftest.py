import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.main import create_app
from app.storage import MessageStore


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store():
    client = AsyncMongoMockClient()
    return MessageStore(client["chatdb"]["messages"])


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as c:
        yield c


@pytest.fixture
def post_message(client):
    def _post(from_: str, to: str, msg: str) -> dict:
        resp = client.post("/chat", json={"from": from_, "to": to, "msg": msg})
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _post

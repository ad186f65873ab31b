# tests/conftest.py
import os
from typing import Any, Dict, List, Tuple

# Settings are read at import time, so the test environment goes first.
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("DEFAULT_PROFILE_PICTURE", "https://img.test/default.png")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from botocore.exceptions import ClientError  # noqa: E402
from mongomock_motor import AsyncMongoMockClient  # noqa: E402

from snapgram.db.mongodb import create_mongodb_indexes, get_database  # noqa: E402
from snapgram.main import app  # noqa: E402
from snapgram.media.storage import ImageStorage, get_image_storage  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeS3Client:
    """Records put_object calls; flip ``fail`` to simulate the image host being down."""

    def __init__(self):
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.fail = False

    def put_object(self, **kwargs: Any) -> Dict[str, Any]:
        if self.fail:
            raise ClientError({"Error": {"Code": "503", "Message": "Slow Down"}}, "PutObject")
        self.objects[kwargs["Key"]] = kwargs
        return {"ETag": "etag"}


@pytest_asyncio.fixture
async def db():
    database = AsyncMongoMockClient()["snapgram_test"]
    await create_mongodb_indexes(database)
    return database


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def storage(s3_client: FakeS3Client) -> ImageStorage:
    return ImageStorage(s3_client, "test-bucket", "https://img.test")


@pytest_asyncio.fixture
async def client(db, storage):
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_image_storage] = lambda: storage
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


async def register(client: httpx.AsyncClient, name: str, password: str = "secret123") -> Tuple[str, Dict[str, Any]]:
    """Register ``name`` and return (token, user summary)."""
    response = await client.post(
        "/api/auth/register",
        json={"username": name, "email": f"{name}@example.com", "password": password},
    )
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return data["token"], data["user"]


def auth(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def create_post(client: httpx.AsyncClient, token: str, caption: str = "hello") -> Dict[str, Any]:
    files: List[Tuple[str, Tuple[str, bytes, str]]] = [("image", ("photo.png", PNG_BYTES, "image/png"))]
    response = await client.post("/api/posts", data={"caption": caption}, files=files, headers=auth(token))
    assert response.status_code == 201, response.text
    return response.json()["data"]["post"]

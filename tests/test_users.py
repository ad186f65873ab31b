"""Profile reads and updates."""
import logging

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from conftest import PNG_BYTES, auth, create_post, register
from snapgram.db.mongodb import get_database
from snapgram.main import app


@pytest.mark.asyncio
async def test_get_profile_with_posts(client):
    token, alice = await register(client, "alice")
    viewer_token, _ = await register(client, "bob")
    await create_post(client, token, caption="one")

    response = await client.get(f"/api/users/{alice['id']}", headers=auth(viewer_token))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user"]["username"] == "alice"
    assert "password" not in data["user"]
    assert [p["caption"] for p in data["posts"]] == ["one"]
    assert data["posts"][0]["author"]["username"] == "alice"


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", [str(ObjectId()), "nope"])
async def test_get_missing_profile(client, user_id):
    token, _ = await register(client, "alice")

    response = await client.get(f"/api/users/{user_id}", headers=auth(token))

    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_update_profile_fields(client, db):
    token, alice = await register(client, "alice")

    response = await client.put(
        "/api/users/profile",
        data={"username": "alicia", "email": "ALICIA@example.com", "bio": "hello there"},
        headers=auth(token),
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Profile updated successfully!"
    user = response.json()["data"]["user"]
    assert user["username"] == "alicia"
    assert user["email"] == "alicia@example.com"
    assert user["bio"] == "hello there"
    stored = await db["users"].find_one({"_id": ObjectId(alice["id"])})
    assert stored["username"] == "alicia"


@pytest.mark.asyncio
async def test_update_profile_can_clear_bio_and_keeps_omitted_fields(client):
    token, _ = await register(client, "alice")
    await client.put("/api/users/profile", data={"bio": "temporary"}, headers=auth(token))

    response = await client.put("/api/users/profile", data={"bio": ""}, headers=auth(token))

    user = response.json()["data"]["user"]
    assert user["bio"] == ""
    assert user["username"] == "alice"


@pytest.mark.asyncio
@pytest.mark.parametrize("field,message", [
    ("username", "Username already taken"),
    ("email", "Email already taken"),
])
async def test_update_profile_rejects_taken_values(client, field, message):
    token, _ = await register(client, "alice")
    await register(client, "bob")
    value = "bob" if field == "username" else "bob@example.com"

    response = await client.put("/api/users/profile", data={field: value}, headers=auth(token))

    assert response.status_code == 400
    assert response.json()["message"] == message


@pytest.mark.asyncio
async def test_update_profile_rejects_long_bio(client):
    token, _ = await register(client, "alice")

    response = await client.put("/api/users/profile", data={"bio": "b" * 151}, headers=auth(token))

    assert response.status_code == 400
    assert response.json()["message"] == "Bio cannot be more than 150 characters"


@pytest.mark.asyncio
async def test_update_profile_picture(client, s3_client):
    token, alice = await register(client, "alice")
    files = {"profile_picture": ("me.png", PNG_BYTES, "image/png")}

    response = await client.put("/api/users/profile", files=files, headers=auth(token))

    assert response.status_code == 200
    [key] = s3_client.objects
    assert key.startswith(f"profile_pics/{alice['id']}_")
    assert response.json()["data"]["user"]["profile_picture"] == f"https://img.test/{key}"


@pytest.mark.asyncio
async def test_profile_picture_upload_failure_changes_nothing(client, db, s3_client):
    token, alice = await register(client, "alice")
    s3_client.fail = True
    files = {"profile_picture": ("me.png", PNG_BYTES, "image/png")}

    response = await client.put("/api/users/profile", data={"bio": "new"}, files=files, headers=auth(token))

    assert response.status_code == 502
    stored = await db["users"].find_one({"_id": ObjectId(alice["id"])})
    assert stored["bio"] == ""


class _RacingUsers:
    """Users collection whose profile write loses a uniqueness race."""

    def __init__(self, collection):
        self._collection = collection

    def __getattr__(self, name):
        return getattr(self._collection, name)

    async def find_one_and_update(self, *args, **kwargs):
        raise DuplicateKeyError("E11000 duplicate key error collection: users index: unique_username")


class _RacingDatabase:
    def __init__(self, db):
        self._db = db

    def __getitem__(self, name):
        if name == "users":
            return _RacingUsers(self._db[name])
        return self._db[name]


@pytest.mark.asyncio
async def test_lost_uniqueness_race_logs_orphaned_picture(client, db, s3_client, caplog):
    token, _ = await register(client, "alice")
    app.dependency_overrides[get_database] = lambda: _RacingDatabase(db)
    files = {"profile_picture": ("me.png", PNG_BYTES, "image/png")}

    with caplog.at_level(logging.WARNING, logger="snapgram.users.user_service"):
        response = await client.put("/api/users/profile", data={"username": "alicia"}, files=files, headers=auth(token))

    assert response.status_code == 400
    assert response.json()["message"] == "Username or email already taken"
    [key] = s3_client.objects
    assert f"orphaned upload {key}" in caplog.text

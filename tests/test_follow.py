"""Follow/unfollow toggling and the two-document edge invariant."""
import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect

from conftest import auth, register
from snapgram.core.errors import UpstreamFailure
from snapgram.follow import service


async def _edge(db, follower_id: str, followee_id: str):
    follower = await db["users"].find_one({"_id": ObjectId(follower_id)})
    followee = await db["users"].find_one({"_id": ObjectId(followee_id)})
    return (
        ObjectId(followee_id) in follower["following"],
        ObjectId(follower_id) in followee["followers"],
    )


@pytest.mark.asyncio
async def test_follow_then_unfollow_restores_state(client, db):
    token, alice = await register(client, "alice")
    _, bob = await register(client, "bob")

    followed = await client.put(f"/api/users/{bob['id']}/follow", headers=auth(token))

    assert followed.status_code == 200
    assert followed.json()["message"] == "Successfully followed bob"
    assert followed.json()["data"] == {
        "target_id": bob["id"],
        "target_username": "bob",
        "caller_id": alice["id"],
        "is_following": True,
        "target_follower_count": 1,
        "caller_following_count": 1,
    }
    assert await _edge(db, alice["id"], bob["id"]) == (True, True)

    unfollowed = await client.put(f"/api/users/{bob['id']}/follow", headers=auth(token))

    data = unfollowed.json()["data"]
    assert unfollowed.json()["message"] == "Successfully unfollowed bob"
    assert data["is_following"] is False
    assert data["target_follower_count"] == 0
    assert data["caller_following_count"] == 0
    assert await _edge(db, alice["id"], bob["id"]) == (False, False)


@pytest.mark.asyncio
async def test_follow_counts_include_existing_edges(client):
    alice_token, alice = await register(client, "alice")
    carol_token, _ = await register(client, "carol")
    _, bob = await register(client, "bob")
    await client.put(f"/api/users/{bob['id']}/follow", headers=auth(carol_token))

    response = await client.put(f"/api/users/{bob['id']}/follow", headers=auth(alice_token))

    data = response.json()["data"]
    assert data["target_follower_count"] == 2
    assert data["caller_following_count"] == 1


@pytest.mark.asyncio
async def test_self_follow_is_rejected_without_mutation(client, db):
    token, alice = await register(client, "alice")
    before = await db["users"].find_one({"_id": ObjectId(alice["id"])})

    response = await client.put(f"/api/users/{alice['id']}/follow", headers=auth(token))

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "You cannot follow or unfollow yourself"}
    after = await db["users"].find_one({"_id": ObjectId(alice["id"])})
    assert after == before


@pytest.mark.asyncio
@pytest.mark.parametrize("target", [str(ObjectId()), "garbage"])
async def test_follow_unknown_user(client, db, target):
    token, alice = await register(client, "alice")

    response = await client.put(f"/api/users/{target}/follow", headers=auth(token))

    assert response.status_code == 404
    stored = await db["users"].find_one({"_id": ObjectId(alice["id"])})
    assert stored["following"] == []


class _FlakyUsers:
    """Users collection whose writes to one document fail."""

    def __init__(self, collection, failing_id: ObjectId):
        self._collection = collection
        self._failing_id = failing_id

    def __getattr__(self, name):
        return getattr(self._collection, name)

    async def find_one_and_update(self, filter, *args, **kwargs):
        if filter.get("_id") == self._failing_id:
            raise AutoReconnect("connection reset")
        return await self._collection.find_one_and_update(filter, *args, **kwargs)


class _FlakyDatabase:
    def __init__(self, db, failing_id: ObjectId):
        self._db = db
        self._failing_id = failing_id

    def __getitem__(self, name):
        if name == "users":
            return _FlakyUsers(self._db[name], self._failing_id)
        return self._db[name]


@pytest.mark.asyncio
async def test_failed_second_write_reverts_first(client, db):
    _, alice = await register(client, "alice")
    _, bob = await register(client, "bob")
    flaky = _FlakyDatabase(db, ObjectId(bob["id"]))

    with pytest.raises(UpstreamFailure):
        await service.toggle_follow(flaky, ObjectId(alice["id"]), bob["id"])

    assert await _edge(db, alice["id"], bob["id"]) == (False, False)


@pytest.mark.asyncio
async def test_failed_second_write_reverts_unfollow(client, db):
    token, alice = await register(client, "alice")
    _, bob = await register(client, "bob")
    await client.put(f"/api/users/{bob['id']}/follow", headers=auth(token))
    flaky = _FlakyDatabase(db, ObjectId(bob["id"]))

    with pytest.raises(UpstreamFailure):
        await service.toggle_follow(flaky, ObjectId(alice["id"]), bob["id"])

    assert await _edge(db, alice["id"], bob["id"]) == (True, True)


@pytest.mark.asyncio
async def test_self_follow_with_uppercase_id_is_rejected(client, db):
    token, alice = await register(client, "alice")

    response = await client.put(f"/api/users/{alice['id'].upper()}/follow", headers=auth(token))

    assert response.status_code == 400
    assert response.json()["message"] == "You cannot follow or unfollow yourself"
    stored = await db["users"].find_one({"_id": ObjectId(alice["id"])})
    assert stored["following"] == [] and stored["followers"] == []

from datetime import datetime
from typing import Tuple
import logging
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from snapgram.core.errors import InvalidOperation, NotFound, UpstreamFailure
from snapgram.db.mongodb import USERS, ensure_object_id
from .schemas import FollowToggleResult

logger = logging.getLogger(__name__)

EDGE_PROJECTION = {"username": 1, "followers": 1, "following": 1}

def _edge_ops(unfollow: bool) -> Tuple[str, str]:
    """Forward and inverse set operators for one direction of the toggle"""
    return ("$pull", "$addToSet") if unfollow else ("$addToSet", "$pull")

async def toggle_follow(
    db: AsyncIOMotorDatabase,
    caller_id: ObjectId,
    target_id: str
) -> FollowToggleResult:
    """
    Follow or unfollow ``target_id`` on behalf of ``caller_id``.

    The edge lives in two documents (caller.following, target.followers) and
    is written as two independent per-document updates. If the second write
    fails the first is reverted; if that revert fails too the edge is left
    half-applied and logged as such.
    """
    target_oid = ensure_object_id(target_id)
    if target_oid == caller_id:
        raise InvalidOperation("You cannot follow or unfollow yourself")

    users = db[USERS]
    target = await users.find_one({"_id": target_oid}, EDGE_PROJECTION) if target_oid else None
    caller = await users.find_one({"_id": caller_id}, EDGE_PROJECTION)
    if not target or not caller:
        raise NotFound("User not found")

    unfollow = target_oid in caller.get("following", [])
    op, inverse = _edge_ops(unfollow)
    now = datetime.utcnow()

    updated_caller = await users.find_one_and_update(
        {"_id": caller_id},
        {op: {"following": target_oid}, "$set": {"updated_at": now}},
        projection=EDGE_PROJECTION,
        return_document=ReturnDocument.AFTER
    )
    if updated_caller is None:
        raise NotFound("User not found")

    try:
        updated_target = await users.find_one_and_update(
            {"_id": target_oid},
            {op: {"followers": caller_id}, "$set": {"updated_at": now}},
            projection=EDGE_PROJECTION,
            return_document=ReturnDocument.AFTER
        )
    except PyMongoError as e:
        logger.error(f"Follow edge {caller_id}->{target_oid}: target write failed: {e}")
        await _revert_caller(db, caller_id, target_oid, inverse)
        raise UpstreamFailure("Unable to update follow relationship") from e

    if updated_target is None:
        await _revert_caller(db, caller_id, target_oid, inverse)
        raise NotFound("User not found")

    is_following = target_oid in updated_caller.get("following", [])
    verb = "followed" if is_following else "unfollowed"
    logger.info(f"User {caller_id} {verb} {target_oid}")

    return FollowToggleResult(
        target_id=str(target_oid),
        target_username=updated_target.get("username", ""),
        caller_id=str(caller_id),
        is_following=is_following,
        target_follower_count=len(updated_target.get("followers", [])),
        caller_following_count=len(updated_caller.get("following", [])),
    )

async def _revert_caller(
    db: AsyncIOMotorDatabase,
    caller_id: ObjectId,
    target_id: ObjectId,
    inverse: str
) -> None:
    try:
        await db[USERS].update_one({"_id": caller_id}, {inverse: {"following": target_id}})
        logger.warning(f"Reverted caller side of follow edge {caller_id}->{target_id}")
    except PyMongoError as e:
        logger.critical(
            f"Follow edge {caller_id}->{target_id} is half-applied: "
            f"caller.following changed but target.followers did not ({e})"
        )


from datetime import datetime
from typing import Any, Dict, Optional
from bson import ObjectId
import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from snapgram.core.errors import NotFound, ValidationError
from snapgram.db.documents import CommentDocument
from snapgram.db.mongodb import POSTS, ensure_object_id, stringify_ids
from .schemas import CommentRead, CommentResult, LikeToggleResult

logger = logging.getLogger(__name__)

class PostEngagementService:
    """Likes and comments on posts"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.posts = db[POSTS]

    async def _get_post(self, post_id: str, projection: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        oid = ensure_object_id(post_id)
        post = await self.posts.find_one({"_id": oid}, projection) if oid else None
        if not post:
            raise NotFound("Post not found")
        return post

    async def toggle_like(self, post_id: str, user_id: ObjectId) -> LikeToggleResult:
        """
        Toggle the caller's like on a post.

        The direction comes from the current document; the change itself is an
        atomic $addToSet/$pull so the likes set never holds duplicates. A blind
        retry toggles again.
        """
        post = await self._get_post(post_id, {"likes": 1})
        is_liked = user_id in post.get("likes", [])

        if is_liked:
            update = {"$pull": {"likes": user_id}}
        else:
            update = {"$addToSet": {"likes": user_id}}
        update["$set"] = {"updated_at": datetime.utcnow()}

        updated = await self.posts.find_one_and_update(
            {"_id": post["_id"]},
            update,
            projection={"likes": 1},
            return_document=ReturnDocument.AFTER
        )
        if updated is None:
            raise NotFound("Post not found")

        likes = stringify_ids(updated.get("likes", []))
        logger.debug(f"User {user_id} {'unliked' if is_liked else 'liked'} post {post['_id']}")

        return LikeToggleResult(
            post_id=str(updated["_id"]),
            is_liked=str(user_id) in likes,
            like_count=len(likes),
            likes=likes,
        )

    async def add_comment(self, post_id: str, author: Dict[str, Any], text: Optional[str]) -> CommentResult:
        """Append a comment and return the full canonical comment sequence"""
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text cannot be empty")

        post = await self._get_post(post_id, {"_id": 1})

        comment: CommentDocument = {
            "_id": ObjectId(),
            "user_id": author["_id"],
            "username": author["username"],
            "text": text,
            "created_at": datetime.utcnow(),
        }
        updated = await self.posts.find_one_and_update(
            {"_id": post["_id"]},
            {"$push": {"comments": comment}, "$set": {"updated_at": comment["created_at"]}},
            projection={"comments": 1},
            return_document=ReturnDocument.AFTER
        )
        if updated is None:
            raise NotFound("Post not found")

        comments = [CommentRead.from_document(c) for c in updated.get("comments", [])]
        created = next((c for c in comments if c.id == str(comment["_id"])), comments[-1])

        return CommentResult(post_id=str(updated["_id"]), comment=created, comments=comments)

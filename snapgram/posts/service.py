from typing import Any, Dict, List, Optional
from datetime import datetime
from bson import ObjectId
from fastapi import UploadFile
import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from snapgram.core.errors import ValidationError
from snapgram.db.documents import PostDocument
from snapgram.db.mongodb import POSTS, USERS
from snapgram.media.storage import POSTS_FOLDER, ImageStorage
from .schemas import CAPTION_MAX_LENGTH, PostRead

logger = logging.getLogger(__name__)

AUTHOR_PROJECTION = {"username": 1, "profile_picture": 1}

class PostService:
    """Creation and listing of image posts"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.posts = db[POSTS]
        self.users = db[USERS]

    async def create_post(
        self,
        author: Dict[str, Any],
        image: Optional[UploadFile],
        caption: Optional[str],
        storage: ImageStorage
    ) -> PostRead:
        """
        Upload the image to the image host and store the post.
        Nothing is written to the database if the upload fails.
        """
        if image is None or not image.filename:
            raise ValidationError("Please upload an image for the post")

        caption = caption or ""
        if len(caption) > CAPTION_MAX_LENGTH:
            raise ValidationError(f"Caption cannot be more than {CAPTION_MAX_LENGTH} characters")

        uploaded = await storage.upload_image(image, folder=POSTS_FOLDER, owner_id=str(author["_id"]))

        now = datetime.utcnow()
        post_doc: PostDocument = {
            "user_id": author["_id"],
            "image_url": uploaded.url,
            "caption": caption,
            "likes": [],
            "comments": [],
            "created_at": now,
            "updated_at": now,
        }
        result = await self.posts.insert_one(post_doc)
        post_doc["_id"] = result.inserted_id
        logger.info(f"User {author['_id']} created post {result.inserted_id}")

        return PostRead.from_document(post_doc)

    async def get_feed(self) -> List[PostRead]:
        """All posts, newest first, with author summaries populated"""
        cursor = self.posts.find({}).sort("created_at", DESCENDING)
        posts = await cursor.to_list(length=None)
        return await self._with_authors(posts)

    async def get_user_posts(self, user_id: ObjectId) -> List[PostRead]:
        cursor = self.posts.find({"user_id": user_id}).sort("created_at", DESCENDING)
        posts = await cursor.to_list(length=None)
        return await self._with_authors(posts)

    async def _with_authors(self, posts: List[Dict[str, Any]]) -> List[PostRead]:
        """Populate author summaries with a single lookup per page of posts"""
        author_ids = list({post["user_id"] for post in posts})
        authors: Dict[ObjectId, Dict[str, Any]] = {}
        if author_ids:
            cursor = self.users.find({"_id": {"$in": author_ids}}, AUTHOR_PROJECTION)
            for user in await cursor.to_list(length=None):
                authors[user["_id"]] = user

        return [PostRead.from_document(post, authors.get(post["user_id"])) for post in posts]

# snapgram/users/user_service.py
from typing import Dict, Any, Optional
from datetime import datetime
import logging
from fastapi import UploadFile
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from snapgram.core.errors import NotFound, ValidationError
from snapgram.db.mongodb import USERS, ensure_object_id
from snapgram.media.storage import PROFILE_PICTURES_FOLDER, ImageStorage
from snapgram.posts.service import PostService
from .schemas import UserProfilePayload, UserSummary, clean_bio, clean_email, clean_username

logger = logging.getLogger(__name__)

class UserService:
    """Service for user profile operations"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.users = db[USERS]

    async def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a user document without its password hash"""
        oid = ensure_object_id(user_id)
        if oid is None:
            return None
        return await self.users.find_one({"_id": oid}, {"password": 0})

    async def get_profile(self, user_id: str) -> UserProfilePayload:
        """A user's summary plus their posts, newest first"""
        user = await self.get_user_by_id(user_id)
        if not user:
            raise NotFound("User not found")

        posts = await PostService(self.db).get_user_posts(user["_id"])
        return UserProfilePayload(user=UserSummary.from_document(user), posts=posts)

    async def update_profile(
        self,
        user: Dict[str, Any],
        storage: ImageStorage,
        username: Optional[str] = None,
        email: Optional[str] = None,
        bio: Optional[str] = None,
        profile_picture: Optional[UploadFile] = None
    ) -> UserSummary:
        """
        Update the caller's own profile.
        Empty username/email mean "unchanged"; bio may be cleared with "".
        """
        user_id = user["_id"]
        changes: Dict[str, Any] = {}

        try:
            if username:
                changes["username"] = clean_username(username)
            if email:
                changes["email"] = clean_email(email)
            if bio is not None:
                changes["bio"] = clean_bio(bio)
        except ValueError as e:
            raise ValidationError(str(e))

        if "username" in changes and await self.users.find_one(
            {"username": changes["username"], "_id": {"$ne": user_id}}, {"_id": 1}
        ):
            raise ValidationError("Username already taken")

        if "email" in changes and await self.users.find_one(
            {"email": changes["email"], "_id": {"$ne": user_id}}, {"_id": 1}
        ):
            raise ValidationError("Email already taken")

        uploaded = None
        if profile_picture is not None and profile_picture.filename:
            uploaded = await storage.upload_image(
                profile_picture,
                folder=PROFILE_PICTURES_FOLDER,
                owner_id=str(user_id)
            )
            changes["profile_picture"] = uploaded.url

        changes["updated_at"] = datetime.utcnow()

        try:
            updated = await self.users.find_one_and_update(
                {"_id": user_id},
                {"$set": changes},
                projection={"password": 0},
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            if uploaded is not None:
                logger.warning(f"Profile update of user {user_id} failed; orphaned upload {uploaded.key}")
            raise ValidationError("Username or email already taken")

        if updated is None:
            raise NotFound("User not found")

        logger.info(f"Updated profile of user {user_id}: {sorted(k for k in changes if k != 'updated_at')}")
        return UserSummary.from_document(updated)

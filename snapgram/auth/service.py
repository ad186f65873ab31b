from datetime import datetime
import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from snapgram.core.config import settings
from snapgram.core.errors import AuthFailure, ValidationError
from snapgram.db.documents import UserDocument
from snapgram.db.mongodb import USERS
from snapgram.users.schemas import UserSummary
from .auth import create_access_token, hash_password, verify_password
from .schemas import AuthPayload, LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)

async def register_user(db: AsyncIOMotorDatabase, data: RegisterRequest) -> AuthPayload:
    """Create a user record and sign a token for it"""
    users = db[USERS]

    if await users.find_one({"email": data.email}, {"_id": 1}):
        raise ValidationError("User with that email already exists")
    if await users.find_one({"username": data.username}, {"_id": 1}):
        raise ValidationError("Username is already taken")

    now = datetime.utcnow()
    user_doc: UserDocument = {
        "username": data.username,
        "email": data.email,
        "password": hash_password(data.password),
        "profile_picture": settings.DEFAULT_PROFILE_PICTURE,
        "bio": "",
        "followers": [],
        "following": [],
        "created_at": now,
        "updated_at": now,
    }

    try:
        result = await users.insert_one(user_doc)
    except DuplicateKeyError:
        # Lost a race with a concurrent registration for the same email/username
        raise ValidationError("User with that email or username already exists")

    user_doc["_id"] = result.inserted_id
    logger.info(f"Registered user {data.username} ({result.inserted_id})")

    return AuthPayload(
        user=UserSummary.from_document(user_doc),
        token=create_access_token(str(result.inserted_id)),
    )

async def login_user(db: AsyncIOMotorDatabase, data: LoginRequest) -> AuthPayload:
    user = await db[USERS].find_one({"email": data.email})
    if not user or not verify_password(data.password, user["password"]):
        raise AuthFailure("Invalid credentials")

    return AuthPayload(
        user=UserSummary.from_document(user),
        token=create_access_token(str(user["_id"])),
    )

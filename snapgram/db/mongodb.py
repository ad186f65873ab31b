# snapgram/db/mongodb.py
import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from functools import lru_cache
from typing import Any, List, Optional, Union, cast
from pymongo import ASCENDING, DESCENDING
from bson import ObjectId
from bson.errors import InvalidId
from snapgram.core.config import settings

logger = logging.getLogger(__name__)

USERS = "users"
POSTS = "posts"

@lru_cache()
def get_mongodb() -> AsyncIOMotorDatabase:
    """
    Get MongoDB database connection with proper typing.
    Uses LRU cache to reuse the same connection.

    Returns:
        AsyncIOMotorDatabase: MongoDB database connection
    """
    client = AsyncIOMotorClient(settings.MONGODB_URL, maxPoolSize=settings.MONGODB_POOL_SIZE)
    return cast(AsyncIOMotorDatabase, client[settings.MONGODB_DB_NAME])

async def get_database() -> AsyncIOMotorDatabase:
    """FastAPI dependency yielding the application database"""
    return get_mongodb()

def ensure_object_id(id_value: Union[str, ObjectId, None]) -> Optional[ObjectId]:
    """
    Convert string ID to ObjectId or return the existing ObjectId.
    Returns None if conversion fails.
    """
    if isinstance(id_value, ObjectId):
        return id_value

    if not id_value:
        return None

    try:
        return ObjectId(id_value)
    except (InvalidId, TypeError):
        logger.debug(f"Invalid ObjectId format: {id_value!r}")
        return None

def stringify_ids(values: List[Any]) -> List[str]:
    """Convert a list of ObjectIds (or strings) to strings, preserving order"""
    return [str(value) for value in values or []]

# MongoDB indexes creation
async def create_mongodb_indexes(db: Optional[AsyncIOMotorDatabase] = None) -> None:
    """
    Create all necessary MongoDB indexes for the application.
    This function should be called during application startup.
    """
    db = db if db is not None else get_mongodb()
    logger.info("Creating MongoDB indexes...")

    await _create_users_indexes(db)
    await _create_posts_indexes(db)

    logger.info("MongoDB indexes created successfully")

async def _create_users_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create indexes for the users collection"""
    users = db[USERS]

    # Uniqueness guards registration and profile edits against races
    await users.create_index("username", unique=True, name="unique_username")
    await users.create_index("email", unique=True, name="unique_email")

async def _create_posts_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create indexes for the posts collection"""
    posts = db[POSTS]

    await posts.create_index("user_id")
    await posts.create_index([("created_at", DESCENDING)])

    # Profile page: a user's posts, newest first
    await posts.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])

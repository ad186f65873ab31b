# snapgram/auth/dependencies.py
from typing import Any, Dict, Optional
import logging
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from snapgram.auth.auth import bearer_transport, read_access_token
from snapgram.core.errors import AuthFailure
from snapgram.db.mongodb import USERS, ensure_object_id, get_database

logger = logging.getLogger(__name__)

async def current_user(
    token: Optional[str] = Depends(bearer_transport.scheme),
    db: AsyncIOMotorDatabase = Depends(get_database)
) -> Dict[str, Any]:
    """Resolve the bearer token to the caller's user document (without password)"""
    if not token:
        raise AuthFailure("Not authorized, no token")

    user_id = ensure_object_id(read_access_token(token))
    if user_id is None:
        raise AuthFailure()

    user = await db[USERS].find_one({"_id": user_id}, {"password": 0})
    if not user:
        logger.info(f"Token presented for unknown user {user_id}")
        raise AuthFailure()

    return user

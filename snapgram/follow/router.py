from typing import Any, Dict
from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from snapgram.auth.dependencies import current_user
from snapgram.core.responses import ApiResponse
from snapgram.db.mongodb import get_database
from . import service
from .schemas import FollowToggleResult

router = APIRouter(prefix="/users", tags=["follow"])

@router.put(
    "/{user_id}/follow",
    response_model=ApiResponse[FollowToggleResult],
    responses={
        400: {"description": "Cannot follow yourself"},
        404: {"description": "User not found"}
    }
)
async def follow_unfollow_user(
    user_id: str,
    user: Dict[str, Any] = Depends(current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Follow or unfollow a user by id"""
    result = await service.toggle_follow(db, user["_id"], user_id)
    verb = "followed" if result.is_following else "unfollowed"
    return ApiResponse(message=f"Successfully {verb} {result.target_username}", data=result)

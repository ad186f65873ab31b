from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from motor.motor_asyncio import AsyncIOMotorDatabase
from snapgram.auth.dependencies import current_user
from snapgram.core.responses import ApiResponse
from snapgram.db.mongodb import get_database
from snapgram.media.storage import ImageStorage, get_image_storage
from .schemas import UserPayload, UserProfilePayload
from .user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])

@router.put("/profile", response_model=ApiResponse[UserPayload])
async def update_user_profile(
    request: Request,
    username: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    profile_picture: Optional[UploadFile] = File(None),
    user: Dict[str, Any] = Depends(current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
    storage: ImageStorage = Depends(get_image_storage)
):
    """Update the logged-in user's profile"""
    if bio is None:
        # empty form values arrive as None, but a submitted "bio=" clears the bio
        bio = (await request.form()).get("bio")
    updated = await UserService(db).update_profile(
        user,
        storage,
        username=username,
        email=email,
        bio=bio,
        profile_picture=profile_picture,
    )
    return ApiResponse(message="Profile updated successfully!", data=UserPayload(user=updated))

@router.get("/{user_id}", response_model=ApiResponse[UserProfilePayload])
async def get_user_profile(
    user_id: str,
    user: Dict[str, Any] = Depends(current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Any authenticated user can view other profiles"""
    payload = await UserService(db).get_profile(user_id)
    return ApiResponse(message="User profile and posts fetched successfully", data=payload)

# snapgram/posts/router.py
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from snapgram.auth.dependencies import current_user
from snapgram.core.responses import ApiResponse
from snapgram.db.mongodb import get_database
from snapgram.media.storage import ImageStorage, get_image_storage
from .engagement_service import PostEngagementService
from .schemas import CommentCreate, CommentResult, FeedPayload, LikeToggleResult, PostPayload
from .service import PostService

router = APIRouter(prefix="/posts", tags=["posts"])

@router.get("", response_model=ApiResponse[FeedPayload])
async def get_feed_posts(
    user: Dict[str, Any] = Depends(current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """All posts, newest first"""
    posts = await PostService(db).get_feed()
    return ApiResponse(message="Posts fetched successfully", data=FeedPayload(posts=posts))

@router.post(
    "",
    response_model=ApiResponse[PostPayload],
    status_code=status.HTTP_201_CREATED
)
async def create_post(
    image: Optional[UploadFile] = File(None),
    caption: Optional[str] = Form(None),
    user: Dict[str, Any] = Depends(current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
    storage: ImageStorage = Depends(get_image_storage)
):
    post = await PostService(db).create_post(user, image, caption, storage)
    return ApiResponse(message="Post created successfully!", data=PostPayload(post=post))

@router.put(
    "/{post_id}/like",
    response_model=ApiResponse[LikeToggleResult],
    responses={404: {"description": "Post not found"}}
)
async def like_unlike_post(
    post_id: str = Path(..., description="The ID of the post to like or unlike"),
    user: Dict[str, Any] = Depends(current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Toggle like status for a post"""
    result = await PostEngagementService(db).toggle_like(post_id, user["_id"])
    message = "Post liked successfully" if result.is_liked else "Post unliked successfully"
    return ApiResponse(message=message, data=result)

@router.post(
    "/{post_id}/comment",
    response_model=ApiResponse[CommentResult],
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Post not found"}}
)
async def add_comment(
    data: CommentCreate,
    post_id: str = Path(..., description="The ID of the post to comment on"),
    user: Dict[str, Any] = Depends(current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    result = await PostEngagementService(db).add_comment(post_id, user, data.text)
    return ApiResponse(message="Comment added successfully", data=result)

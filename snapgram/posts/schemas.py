# snapgram/posts/schemas.py
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict

from snapgram.db.mongodb import stringify_ids

CAPTION_MAX_LENGTH = 2200

class AuthorSummary(BaseModel):
    """Author fields populated onto posts in feeds and profiles"""
    id: str
    username: str
    profile_picture: Optional[str] = None

    @classmethod
    def from_document(cls, user: Dict[str, Any]) -> "AuthorSummary":
        return cls(
            id=str(user["_id"]),
            username=user["username"],
            profile_picture=user.get("profile_picture"),
        )

class CommentRead(BaseModel):
    id: str
    user_id: str
    username: str
    text: str
    created_at: datetime

    @classmethod
    def from_document(cls, comment: Dict[str, Any]) -> "CommentRead":
        return cls(
            id=str(comment["_id"]),
            user_id=str(comment["user_id"]),
            username=comment["username"],
            text=comment["text"],
            created_at=comment["created_at"],
        )

class PostRead(BaseModel):
    """Unified Post Response Schema"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    author: Optional[AuthorSummary] = None
    image_url: str
    caption: str = ""
    likes: List[str] = []
    comments: List[CommentRead] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(
        cls,
        post: Dict[str, Any],
        author: Optional[Dict[str, Any]] = None
    ) -> "PostRead":
        return cls(
            id=str(post["_id"]),
            user_id=str(post["user_id"]),
            author=AuthorSummary.from_document(author) if author else None,
            image_url=post["image_url"],
            caption=post.get("caption", ""),
            likes=stringify_ids(post.get("likes", [])),
            comments=[CommentRead.from_document(c) for c in post.get("comments", [])],
            created_at=post["created_at"],
            updated_at=post.get("updated_at"),
        )

class PostPayload(BaseModel):
    post: PostRead

class FeedPayload(BaseModel):
    posts: List[PostRead]

class CommentCreate(BaseModel):
    text: str = ""

class LikeToggleResult(BaseModel):
    """Canonical like state after a toggle"""
    post_id: str
    is_liked: bool
    like_count: int
    likes: List[str]

class CommentResult(BaseModel):
    """The new comment plus the full canonical comment sequence"""
    post_id: str
    comment: CommentRead
    comments: List[CommentRead]

import re
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

from snapgram.db.mongodb import stringify_ids
from snapgram.posts.schemas import PostRead

USERNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 6
BIO_MAX_LENGTH = 150
EMAIL_PATTERN = re.compile(r".+@.+\..+")

def clean_username(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("Please enter a username")
    if len(value) < USERNAME_MIN_LENGTH:
        raise ValueError(f"Username must be at least {USERNAME_MIN_LENGTH} characters long")
    return value

def clean_email(value: str) -> str:
    value = (value or "").strip().lower()
    if not value:
        raise ValueError("Please enter an email")
    if not EMAIL_PATTERN.fullmatch(value):
        raise ValueError("Please enter a valid email address")
    return value

def clean_bio(value: str) -> str:
    if len(value) > BIO_MAX_LENGTH:
        raise ValueError(f"Bio cannot be more than {BIO_MAX_LENGTH} characters")
    return value

class UserSummary(BaseModel):
    """Public view of a user record; never carries the password hash"""
    id: str
    username: str
    email: str
    profile_picture: str
    bio: str = ""
    followers: List[str] = []
    following: List[str] = []
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, user: Dict[str, Any]) -> "UserSummary":
        return cls(
            id=str(user["_id"]),
            username=user["username"],
            email=user["email"],
            profile_picture=user.get("profile_picture", ""),
            bio=user.get("bio", ""),
            followers=stringify_ids(user.get("followers", [])),
            following=stringify_ids(user.get("following", [])),
            created_at=user.get("created_at"),
        )

class UserPayload(BaseModel):
    user: UserSummary

class UserProfilePayload(BaseModel):
    user: UserSummary
    posts: List[PostRead]

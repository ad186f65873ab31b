from typing import TypedDict, List
from datetime import datetime
from bson import ObjectId

class UserDocument(TypedDict):

    _id: ObjectId
    username: str
    email: str
    password: str  # hash only
    profile_picture: str
    bio: str
    followers: List[ObjectId]
    following: List[ObjectId]
    created_at: datetime
    updated_at: datetime

class CommentDocument(TypedDict):

    _id: ObjectId
    user_id: ObjectId
    username: str  # snapshot taken when the comment was written
    text: str
    created_at: datetime

class PostDocument(TypedDict):

    _id: ObjectId
    user_id: ObjectId
    image_url: str
    caption: str
    likes: List[ObjectId]
    comments: List[CommentDocument]
    created_at: datetime
    updated_at: datetime

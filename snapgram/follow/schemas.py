from pydantic import BaseModel

class FollowToggleResult(BaseModel):
    """Canonical follow state after a toggle"""
    target_id: str
    target_username: str = ""
    caller_id: str
    is_following: bool
    target_follower_count: int
    caller_following_count: int

"""Optimistic local state for likes, follows and comments.

Each mutable relation moves through an explicit state machine::

    SETTLED --action--> PENDING --response--> RECONCILING --> SETTLED
                           |
                           +----failure----> ROLLED_BACK

A snapshot of every field the optimistic change touches is taken before the
change is applied, so a rollback restores membership and counts together.
While a relation is PENDING further actions are ignored, the same way a UI
disables the control until the request completes.
"""
from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, TypeVar

from snapgram.follow.schemas import FollowToggleResult
from snapgram.posts.schemas import CommentRead, CommentResult, LikeToggleResult, PostRead
from snapgram.users.schemas import UserSummary

from .api import ApiError, SocialApiClient

logger = logging.getLogger(__name__)

S = TypeVar("S")
R = TypeVar("R")


class RelationState(str, Enum):
    SETTLED = "settled"
    PENDING = "pending"
    RECONCILING = "reconciling"
    ROLLED_BACK = "rolled_back"


class OptimisticRelation(ABC, Generic[S, R]):
    """Base state machine shared by every optimistic relation."""

    def __init__(self) -> None:
        self.state = RelationState.SETTLED
        self.error: Optional[str] = None
        self.listeners: List[Callable[[RelationState], None]] = []

    @property
    def is_pending(self) -> bool:
        return self.state is RelationState.PENDING

    def _transition(self, state: RelationState) -> None:
        self.state = state
        for listener in self.listeners:
            listener(state)

    @abstractmethod
    def _snapshot(self) -> S:
        """Copy of every field the optimistic change will alter."""

    @abstractmethod
    def _restore(self, snapshot: S) -> None:
        ...

    @abstractmethod
    def _apply_optimistic(self) -> None:
        ...

    @abstractmethod
    def _reconcile(self, result: R) -> None:
        """Overwrite local state with the server's canonical value."""

    async def _run(self, send: Callable[[], Any]) -> bool:
        """Drive one mutation; returns False when ignored because one is in flight."""

        if self.is_pending:
            logger.debug("%s ignored: a mutation is already in flight", type(self).__name__)
            return False

        snapshot = self._snapshot()
        self._apply_optimistic()
        self.error = None
        self._transition(RelationState.PENDING)

        try:
            result = await send()
        except ApiError as exc:
            self._restore(snapshot)
            self.error = exc.message
            self._transition(RelationState.ROLLED_BACK)
            logger.info("%s rolled back: %s", type(self).__name__, exc.message)
            return True

        self._transition(RelationState.RECONCILING)
        self._reconcile(result)
        self._transition(RelationState.SETTLED)
        return True


@dataclass(frozen=True)
class _LikeSnapshot:
    is_liked: bool
    like_count: int
    likes: List[str]


class PostLikeState(OptimisticRelation[_LikeSnapshot, LikeToggleResult]):
    """Like membership and count of one post, as seen by one viewer."""

    def __init__(self, post_id: str, viewer_id: str, likes: List[str]):
        super().__init__()
        self.post_id = post_id
        self.viewer_id = viewer_id
        self.likes = list(likes)
        self.is_liked = viewer_id in self.likes
        self.like_count = len(self.likes)

    @classmethod
    def from_post(cls, post: PostRead, viewer_id: str) -> "PostLikeState":
        return cls(post.id, viewer_id, post.likes)

    def _snapshot(self) -> _LikeSnapshot:
        return _LikeSnapshot(self.is_liked, self.like_count, list(self.likes))

    def _restore(self, snapshot: _LikeSnapshot) -> None:
        self.is_liked = snapshot.is_liked
        self.like_count = snapshot.like_count
        self.likes = list(snapshot.likes)

    def _apply_optimistic(self) -> None:
        if self.is_liked:
            self.likes = [uid for uid in self.likes if uid != self.viewer_id]
            self.like_count -= 1
        else:
            self.likes.append(self.viewer_id)
            self.like_count += 1
        self.is_liked = not self.is_liked

    def _reconcile(self, result: LikeToggleResult) -> None:
        self.likes = list(result.likes)
        self.is_liked = result.is_liked
        self.like_count = result.like_count

    async def toggle(self, client: SocialApiClient) -> bool:
        return await self._run(lambda: client.toggle_like(self.post_id))


@dataclass(frozen=True)
class _FollowSnapshot:
    is_following: bool
    target_follower_count: int
    target_followers: List[str]
    viewer_following_count: int
    viewer_following: List[str]


class FollowState(OptimisticRelation[_FollowSnapshot, FollowToggleResult]):
    """Follow edge between the viewer and a profile being viewed."""

    def __init__(self, target: UserSummary, viewer: UserSummary):
        super().__init__()
        self.target_id = target.id
        self.viewer_id = viewer.id
        self.target_followers = list(target.followers)
        self.viewer_following = list(viewer.following)
        self.is_following = self.target_id in self.viewer_following
        self.target_follower_count = len(self.target_followers)
        self.viewer_following_count = len(self.viewer_following)

    @property
    def is_own_profile(self) -> bool:
        return self.target_id == self.viewer_id

    def _snapshot(self) -> _FollowSnapshot:
        return _FollowSnapshot(
            self.is_following,
            self.target_follower_count,
            list(self.target_followers),
            self.viewer_following_count,
            list(self.viewer_following),
        )

    def _restore(self, snapshot: _FollowSnapshot) -> None:
        self.is_following = snapshot.is_following
        self.target_follower_count = snapshot.target_follower_count
        self.target_followers = list(snapshot.target_followers)
        self.viewer_following_count = snapshot.viewer_following_count
        self.viewer_following = list(snapshot.viewer_following)

    def _set_membership(self, following: bool) -> None:
        self.target_followers = [uid for uid in self.target_followers if uid != self.viewer_id]
        self.viewer_following = [uid for uid in self.viewer_following if uid != self.target_id]
        if following:
            self.target_followers.append(self.viewer_id)
            self.viewer_following.append(self.target_id)

    def _apply_optimistic(self) -> None:
        step = -1 if self.is_following else 1
        self.is_following = not self.is_following
        self._set_membership(self.is_following)
        self.target_follower_count += step
        self.viewer_following_count += step

    def _reconcile(self, result: FollowToggleResult) -> None:
        self.is_following = result.is_following
        self._set_membership(result.is_following)
        self.target_follower_count = result.target_follower_count
        self.viewer_following_count = result.caller_following_count

    async def toggle(self, client: SocialApiClient) -> bool:
        if self.is_own_profile:
            return False
        accepted = await self._run(lambda: client.toggle_follow(self.target_id))
        if accepted and self.state is RelationState.SETTLED and client.session is not None:
            user = client.session.user.model_copy(update={"following": list(self.viewer_following)})
            client.session = client.session.with_user(user)
        return accepted


class CommentThread(OptimisticRelation[List[CommentRead], CommentResult]):
    """Comment sequence of one post with optimistic append."""

    def __init__(self, post_id: str, comments: List[CommentRead]):
        super().__init__()
        self.post_id = post_id
        self.comments = list(comments)
        self._draft: Optional[CommentRead] = None

    @classmethod
    def from_post(cls, post: PostRead) -> "CommentThread":
        return cls(post.id, post.comments)

    def _snapshot(self) -> List[CommentRead]:
        return list(self.comments)

    def _restore(self, snapshot: List[CommentRead]) -> None:
        self.comments = list(snapshot)

    def _apply_optimistic(self) -> None:
        if self._draft is not None:
            self.comments.append(self._draft)

    def _reconcile(self, result: CommentResult) -> None:
        self.comments = list(result.comments)

    async def submit(self, client: SocialApiClient, author: UserSummary, text: str) -> bool:
        if self.is_pending:
            return False
        text = text.strip()
        if not text:
            # rejected before any optimistic change, so there is nothing to restore
            self.error = "Comment text cannot be empty"
            self._transition(RelationState.ROLLED_BACK)
            return False

        self._draft = CommentRead(
            id=f"pending-{uuid.uuid4().hex}",
            user_id=author.id,
            username=author.username,
            text=text,
            created_at=datetime.utcnow(),
        )
        try:
            return await self._run(lambda: client.add_comment(self.post_id, text))
        finally:
            self._draft = None


__all__ = [
    "CommentThread",
    "FollowState",
    "OptimisticRelation",
    "PostLikeState",
    "RelationState",
]

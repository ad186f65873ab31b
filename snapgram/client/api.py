"""Async HTTP client for the Snapgram API."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel

from snapgram.auth.schemas import AuthPayload
from snapgram.core.responses import ApiResponse
from snapgram.follow.schemas import FollowToggleResult
from snapgram.posts.schemas import CommentResult, FeedPayload, LikeToggleResult, PostPayload, PostRead
from snapgram.users.schemas import UserPayload, UserProfilePayload, UserSummary

from .session import SessionContext

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# (filename, content, content_type)
FileTuple = Tuple[str, bytes, str]


class ApiError(RuntimeError):
    """Raised when the API answers with ``success: false`` or cannot be reached."""

    def __init__(self, status_code: int, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class SessionExpiredError(ApiError):
    """The session is missing, expired, or was rejected by the server."""


class SocialApiClient:
    """Typed wrapper around every API endpoint.

    Authenticated calls check the session's expiry before sending and treat a
    401 response the same way: the session is dropped and
    ``on_session_expired`` is invoked (forced logout).
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[SessionContext] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
        on_session_expired: Optional[Callable[[], None]] = None,
    ):
        self.session = session
        self.on_session_expired = on_session_expired
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "SocialApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def logout(self) -> None:
        self.session = None

    def _expire(self, message: str) -> SessionExpiredError:
        logger.warning("Session expired or invalid, logging out: %s", message)
        self.session = None
        if self.on_session_expired is not None:
            self.on_session_expired()
        return SessionExpiredError(401, message)

    async def _request(
        self,
        method: str,
        path: str,
        model: Type[M],
        *,
        auth: bool = True,
        **kwargs: Any,
    ) -> M:
        headers: Dict[str, str] = {}
        if auth:
            if self.session is None or self.session.is_expired():
                raise self._expire("Session expired, please log in again")
            headers["Authorization"] = f"Bearer {self.session.token}"

        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise ApiError(0, f"Network error: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {"success": False, "message": response.text or response.reason_phrase}

        if response.status_code == 401 and auth:
            raise self._expire(body.get("message", "Not authorized"))

        if response.is_error or not body.get("success", False):
            raise ApiError(response.status_code, body.get("message", "Request failed"), body.get("errors"))

        return ApiResponse[model].model_validate(body).data

    # Auth

    async def register(self, username: str, email: str, password: str) -> SessionContext:
        payload = await self._request(
            "POST",
            "/auth/register",
            AuthPayload,
            auth=False,
            json={"username": username, "email": email, "password": password},
        )
        self.session = SessionContext(token=payload.token, user=payload.user)
        return self.session

    async def login(self, email: str, password: str) -> SessionContext:
        payload = await self._request(
            "POST", "/auth/login", AuthPayload, auth=False, json={"email": email, "password": password}
        )
        self.session = SessionContext(token=payload.token, user=payload.user)
        return self.session

    # Posts

    async def get_feed(self) -> List[PostRead]:
        payload = await self._request("GET", "/posts", FeedPayload)
        return payload.posts

    async def create_post(self, image: FileTuple, caption: str = "") -> PostRead:
        payload = await self._request("POST", "/posts", PostPayload, data={"caption": caption}, files={"image": image})
        return payload.post

    async def toggle_like(self, post_id: str) -> LikeToggleResult:
        return await self._request("PUT", f"/posts/{post_id}/like", LikeToggleResult)

    async def add_comment(self, post_id: str, text: str) -> CommentResult:
        return await self._request("POST", f"/posts/{post_id}/comment", CommentResult, json={"text": text})

    # Users

    async def get_user_profile(self, user_id: str) -> UserProfilePayload:
        return await self._request("GET", f"/users/{user_id}", UserProfilePayload)

    async def update_profile(
        self,
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
        bio: Optional[str] = None,
        profile_picture: Optional[FileTuple] = None,
    ) -> UserSummary:
        """Update the caller's profile; the session's user is replaced with the result."""

        form = {
            key: value
            for key, value in (("username", username), ("email", email), ("bio", bio))
            if value is not None
        }
        files = {"profile_picture": profile_picture} if profile_picture is not None else None
        payload = await self._request("PUT", "/users/profile", UserPayload, data=form, files=files)
        if self.session is not None:
            self.session = self.session.with_user(payload.user)
        return payload.user

    async def toggle_follow(self, user_id: str) -> FollowToggleResult:
        return await self._request("PUT", f"/users/{user_id}/follow", FollowToggleResult)


__all__ = ["ApiError", "SessionExpiredError", "SocialApiClient"]

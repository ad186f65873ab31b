"""Explicit client session: the token and user every API call is made with."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import jwt

from snapgram.users.schemas import UserSummary

logger = logging.getLogger(__name__)


def token_expiry(token: str) -> Optional[datetime]:
    """Read the ``exp`` claim without verifying the signature (the server does that)."""

    try:
        claims = jwt.decode(token, options={"verify_signature": False, "verify_aud": False})
    except jwt.PyJWTError:
        return None
    exp = claims.get("exp")
    if exp is None:
        return None
    return datetime.fromtimestamp(int(exp), tz=timezone.utc)


@dataclass
class SessionContext:
    """Authenticated session handed to :class:`SocialApiClient`."""

    token: str
    user: UserSummary
    expires_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if self.expires_at is None:
            self.expires_at = token_expiry(self.token)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        # A token we cannot read is treated as expired
        if self.expires_at is None:
            return True
        return (now or datetime.now(timezone.utc)) >= self.expires_at

    def with_user(self, user: UserSummary) -> "SessionContext":
        """Copy of this session carrying refreshed user data."""

        return SessionContext(token=self.token, user=user, expires_at=self.expires_at)


class SessionStore:
    """Persists a session as JSON so it survives restarts of the client process."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def save(self, session: SessionContext) -> None:
        payload = {"token": session.token, "user": session.user.model_dump(mode="json")}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def load(self, now: Optional[datetime] = None) -> Optional[SessionContext]:
        """Rehydrate the stored session, dropping it when expired or unreadable."""

        if not self.path.exists():
            return None
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            session = SessionContext(token=payload["token"], user=UserSummary.model_validate(payload["user"]))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding unreadable session file %s: %s", self.path, exc)
            self.clear()
            return None

        if session.is_expired(now):
            logger.info("Stored session expired; logging out")
            self.clear()
            return None
        return session


__all__ = ["SessionContext", "SessionStore", "token_expiry"]

# snapgram/auth/auth.py
from typing import Any, Dict, Optional
import jwt
from fastapi_users.authentication import BearerTransport
from fastapi_users.jwt import decode_jwt, generate_jwt
from fastapi_users.password import PasswordHelper
from snapgram.core.config import settings

JWT_ALGORITHM = "HS256"

bearer_transport = BearerTransport(tokenUrl="auth/login")

password_helper = PasswordHelper()

def hash_password(password: str) -> str:
    return password_helper.hash(password)

def verify_password(password: str, hashed_password: str) -> bool:
    verified, _ = password_helper.verify_and_update(password, hashed_password)
    return verified

def create_access_token(user_id: str, lifetime_seconds: Optional[int] = None) -> str:
    """Sign a token carrying the user id as ``sub``"""
    data = {"sub": str(user_id), "aud": settings.JWT_AUDIENCE}
    return generate_jwt(
        data,
        settings.JWT_SECRET,
        lifetime_seconds or settings.JWT_LIFETIME_SECONDS,
        algorithm=JWT_ALGORITHM,
    )

def read_access_token(token: str) -> Optional[str]:
    """Return the user id carried by a valid token, or None"""
    try:
        payload: Dict[str, Any] = decode_jwt(
            token,
            settings.JWT_SECRET,
            [settings.JWT_AUDIENCE],
            algorithms=[JWT_ALGORITHM],
        )
    except jwt.PyJWTError:
        return None
    return payload.get("sub")

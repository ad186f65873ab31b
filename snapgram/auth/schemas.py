# snapgram/auth/schemas.py
from pydantic import BaseModel, field_validator

from snapgram.users.schemas import (
    PASSWORD_MIN_LENGTH,
    UserSummary,
    clean_email,
    clean_username,
)

class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str

    @field_validator("username")
    def validate_username(cls, v):
        return clean_username(v)

    @field_validator("email")
    def validate_email(cls, v):
        return clean_email(v)

    @field_validator("password")
    def validate_password(cls, v):
        if not v:
            raise ValueError("Please enter a password")
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
        return v

class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    def normalize_email(cls, v):
        return (v or "").strip().lower()

class AuthPayload(BaseModel):
    user: UserSummary
    token: str

# snapgram/core/errors.py
from typing import List, Optional


class SnapgramError(Exception):
    """Base class for errors that map onto a structured API response"""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(SnapgramError):
    """Bad or missing input, or a duplicate unique field"""
    status_code = 400
    default_message = "Validation failed"


class InvalidOperation(SnapgramError):
    status_code = 400
    default_message = "Invalid operation"


class AuthFailure(SnapgramError):
    """Bad credentials, or a missing, invalid or expired token"""
    status_code = 401
    default_message = "Not authorized, token failed"


class NotFound(SnapgramError):
    status_code = 404
    default_message = "Resource not found"


class UpstreamFailure(SnapgramError):
    """A collaborator (image host, database write) failed mid-operation"""
    status_code = 502
    default_message = "Upstream service failed"

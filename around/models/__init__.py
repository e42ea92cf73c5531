"""Data models for around"""

from .account import Account, LoginRequest, SignupRequest, USERNAME_PATTERN
from .post import IngestResult, IngestStatus, Location, Post
from .token import TokenClaims

__all__ = [
    "Account",
    "LoginRequest",
    "SignupRequest",
    "USERNAME_PATTERN",
    "IngestResult",
    "IngestStatus",
    "Location",
    "Post",
    "TokenClaims",
]

"""Account data models"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

USERNAME_PATTERN = r"^[a-z0-9_]+$"


class SignupRequest(BaseModel):
    """Candidate account as submitted to /signup"""
    username: str = ""
    password: str = ""
    age: Optional[int] = None
    gender: Optional[str] = None


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class Account(BaseModel):
    """Stored credential record. The password is only kept as a bcrypt hash."""
    username: str = Field(..., pattern=USERNAME_PATTERN)
    password_hash: str
    age: Optional[int] = None
    gender: Optional[str] = None

    model_config = ConfigDict(frozen=True)  # Never mutated after signup

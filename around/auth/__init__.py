"""Credential and token subsystem"""

from .passwords import hash_password, verify_password
from .service import AuthService
from .tokens import TokenIssuer

__all__ = ["AuthService", "TokenIssuer", "hash_password", "verify_password"]

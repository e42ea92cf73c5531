"""Bearer token claims"""

from datetime import datetime

from pydantic import BaseModel


class TokenClaims(BaseModel):
    """Decoded claims of a verified bearer token"""
    username: str
    issued_at: datetime
    expires_at: datetime

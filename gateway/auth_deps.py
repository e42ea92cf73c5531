"""
FastAPI dependencies for bearer-token authentication.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from around.app import AroundApp
from around.utils.exceptions import InvalidToken


security = HTTPBearer(auto_error=False)


def get_around(request: Request) -> AroundApp:
    """The initialized application attached at startup"""
    return request.app.state.around


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Extract the token from an Authorization: Bearer header"""
    if credentials is None:
        return None
    return credentials.credentials


async def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    around: AroundApp = Depends(get_around),
) -> str:
    """Dependency returning the username of a valid bearer token"""
    if not token:
        raise InvalidToken("Not authenticated")
    return around.auth.authorize(token)


require_auth = get_current_user

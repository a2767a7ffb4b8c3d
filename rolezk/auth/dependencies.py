"""
FastAPI Authentication Dependencies
===================================

Bearer-token identity for the proof generation route. Tokens are issued
elsewhere; this service only validates them.

Version: 0.1.0
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from rolezk.auth.jwt import decode_token
from rolezk.logging import get_logger


logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class User(BaseModel):
    """Authenticated proof owner."""

    id: str = Field(..., description="Owner ID, the token subject")
    roles: list[str] = Field(default_factory=list, description="Role claims")


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> User:
    """
    Resolve the proof owner from an access token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or not an access token
    """
    if credentials is None:
        logger.warning("auth_token_missing")
        raise _unauthorized()

    token_data = decode_token(credentials.credentials, verify_type="access")
    if token_data is None:
        raise _unauthorized()

    logger.debug("owner_authenticated", owner_id=token_data.sub, roles=token_data.roles)
    return User(id=token_data.sub, roles=token_data.roles)

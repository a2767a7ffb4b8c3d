"""
JWT Access Tokens
=================

Access tokens name the proof owner (``sub``) and carry the role claims
that decide the owner's clearance.

Version: 0.1.0
"""

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, Field, ValidationError

from rolezk.config import settings
from rolezk.logging import get_logger


logger = get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"


class TokenData(BaseModel):
    """Validated token claims."""

    sub: str = Field(..., min_length=1, description="Owner ID")
    roles: list[str] = Field(default_factory=list, description="Role claims")
    exp: datetime
    iat: datetime | None = None
    token_type: str = ACCESS_TOKEN_TYPE


def create_access_token(
    owner_id: str,
    roles: Iterable[str] = (),
    expires_delta: timedelta | None = None,
    **claims: Any,
) -> str:
    """
    Issue an access token for a proof owner.

    Args:
        owner_id: Token subject
        roles: Role names, resolved against the clearance table
        expires_delta: Lifetime; defaults to JWT_ACCESS_TOKEN_EXPIRE_MINUTES
        **claims: Extra claims copied into the payload
    """
    issued_at = datetime.now(UTC)
    lifetime = expires_delta or timedelta(minutes=settings.jwt.access_token_expire_minutes)

    payload = {
        **claims,
        "sub": owner_id,
        "roles": list(roles),
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "token_type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(
        payload,
        settings.jwt.secret_key.get_secret_value(),
        algorithm=settings.jwt.algorithm,
    )


def decode_token(token: str, verify_type: str | None = None) -> TokenData | None:
    """
    Verify a token's signature, expiry and claims.

    Returns:
        TokenData, or None when the token is unusable for any reason
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt.secret_key.get_secret_value(),
            algorithms=[settings.jwt.algorithm],
        )
        token_data = TokenData.model_validate(payload)
    except (JWTError, ValidationError) as e:
        logger.warning("token_rejected", error_type=type(e).__name__)
        return None

    if verify_type and token_data.token_type != verify_type:
        logger.warning("token_type_mismatch", expected=verify_type, actual=token_data.token_type)
        return None

    return token_data

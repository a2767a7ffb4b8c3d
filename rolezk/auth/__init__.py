"""
Authentication Module
=====================

JWT bearer authentication for the proof generation endpoint. The token's
subject is the proof owner and its role claims feed the clearance lookup.

Usage:
    from rolezk.auth import create_access_token, get_current_user

    token = create_access_token("user-1", roles=["moderator"])

    @app.post("/proofs")
    async def prove(user: User = Depends(get_current_user)):
        ...
"""

from rolezk.auth.dependencies import User, bearer_scheme, get_current_user
from rolezk.auth.jwt import TokenData, create_access_token, decode_token

__all__ = [
    # JWT
    "create_access_token",
    "decode_token",
    "TokenData",
    # Dependencies
    "User",
    "get_current_user",
    "bearer_scheme",
]

"""Bearer token authentication.

Identity is issued elsewhere; this module only verifies the token and hands
the ``sub`` claim to the routes as the user id.
"""

import jwt
from fastapi import HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from mystep.config import get_settings

security = HTTPBearer()


def decode_user_id(token: str) -> str:
    """Validate a JWT and return its subject."""
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_public_key or "secret",
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user ID",
        )
    return str(user_id)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
) -> str:
    """Extract and validate the user id from the bearer token."""
    return decode_user_id(credentials.credentials)

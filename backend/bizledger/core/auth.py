"""
JWT token utilities.

WHY: Sign-in happens at the identity provider; this service only needs to
verify bearer tokens and read the member id and organization id from them.
``create_access_token`` exists for service-to-service calls and tests.
"""

from datetime import datetime, timedelta
from typing import Dict, Any, Optional
from jose import jwt, JWTError

from bizledger.core.config import settings
from bizledger.core.exceptions import (
    TokenExpiredError,
    TokenInvalidError,
)


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT access token.

    Token includes:
    - Caller data (member_id, org_id)
    - exp: Expiration time (default: settings.JWT_EXPIRATION_MINUTES)
    - iat: Issued at time
    - nbf: Not before time

    Args:
        data: Claims to encode in the token
        expires_delta: Optional custom expiration time

    Returns:
        JWT token string

    Example:
        >>> token = create_access_token({"member_id": 1, "org_id": 1})
        >>> verify_token(token)["member_id"]
        1
    """
    to_encode = data.copy()

    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_EXPIRATION_MINUTES))
    to_encode.update({"exp": expire, "iat": now, "nbf": now})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is malformed or signature invalid
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )

    except jwt.ExpiredSignatureError:
        raise TokenExpiredError(message="Token has expired")

    except JWTError as e:
        raise TokenInvalidError(message="Invalid token", error=str(e))

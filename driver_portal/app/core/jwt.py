"""
Access token utilities.

Tokens are issued by the hosted auth service; the portal only verifies them.
"""

from typing import Optional, Dict, Any
from jose import JWTError, jwt
from driver_portal.app.core.config import settings


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate an access token issued by the auth service.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload if valid (includes: sub, aud, role, exp), None otherwise
    """
    try:
        payload = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
        return payload
    except JWTError:
        return None

"""JWT token generation and validation

Identity is issued by an external auth provider; this service only
validates bearer tokens and reads the actor from their claims.

JWT Token Claims Structure:
===========================

Standard JWT Claims:
- sub (Subject): User ID as UUID string
  Example: "550e8400-e29b-41d4-a716-446655440000"

- iat (Issued At): Unix timestamp when token was created

- exp (Expiration): Unix timestamp when token expires
  Example: iat + ACCESS_TOKEN_EXPIRE_MINUTES

Custom Claims:
- role: User's role in the project workspace
  Values: "ADMIN" | "REVIEWER" | "MEMBER" | "CONTRACTOR" | "CUSTOMER"
  Purpose: Role-based access control for workflow actions and visibility

Security Properties:
- Algorithm: JWT_ALGORITHM setting (HS256 by default)
- Secret: JWT_SECRET setting
- Stateless validation (no database lookup required for auth)

Example Token Payload:
{
  "sub": "550e8400-e29b-41d4-a716-446655440000",
  "role": "REVIEWER",
  "iat": 1704368400,
  "exp": 1704372000
}
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional
from uuid import UUID
import jwt

from config import Settings, get_settings

from .roles import Actor, UserRole


def create_access_token(
    user_id: UUID,
    role: UserRole,
    settings: Optional[Settings] = None,
    expires_in: Optional[timedelta] = None,
) -> str:
    """Create a signed access token (used by tests and local tooling).

    Args:
        user_id: User's UUID
        role: User's role
        settings: Settings to sign with (defaults to get_settings())
        expires_in: Token lifetime (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        str: Signed JWT token
    """
    settings = settings or get_settings()
    if expires_in is None:
        expires_in = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(timezone.utc)
    payload = {
        'sub': str(user_id),
        'role': UserRole(role).value,
        'iat': int(now.timestamp()),
        'exp': int((now + expires_in).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Args:
        token: JWT token string

    Returns:
        dict: Decoded token payload with claims

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
    """
    settings = settings or get_settings()

    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise jwt.ExpiredSignatureError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise jwt.InvalidTokenError(f"Invalid token: {str(e)}")


def actor_from_claims(payload: Dict[str, Any]) -> Actor:
    """Build the Actor from decoded claims.

    Raises:
        ValueError: If `sub` is not a UUID or `role` is missing or unknown
    """
    user_id = payload.get('sub')
    role = payload.get('role')
    if not user_id or not role:
        raise ValueError("Token is missing 'sub' or 'role' claim")
    return Actor(user_id=UUID(user_id), role=UserRole(role))

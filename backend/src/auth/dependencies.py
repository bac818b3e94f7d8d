"""FastAPI dependencies for authentication and authorization.

Usage:
    @router.get("/documents")
    async def list_documents(actor: Actor = Depends(get_current_actor)):
        ...
"""

from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt

from config import Settings, get_settings
from .jwt import actor_from_claims, decode_token
from .roles import Actor


# HTTP Bearer token security scheme
security = HTTPBearer()


def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    settings: Settings = Depends(get_settings),
) -> Actor:
    """Validate the bearer token and return the acting user.

    Raises:
        HTTPException 401: If token is missing, invalid, expired, or has bad claims
    """
    try:
        payload = decode_token(credentials.credentials, settings)
        return actor_from_claims(payload)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token claims: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


# Type alias for dependency injection
CurrentActor = Annotated[Actor, Depends(get_current_actor)]

from typing import Any, Dict, Optional

from fastapi import Request
from jose import jwt
from jose.exceptions import JWTError, ExpiredSignatureError, JWTClaimsError

import os
import logging
from dotenv import load_dotenv

from exceptions import InfrastructureError, Unauthorized

load_dotenv()

logger = logging.getLogger(__name__)

# Tokens are issued by the ERP's login service and signed with a shared secret.
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")


def get_jwt_secret() -> str:
    """The shared signing secret. There is no fallback: without it no token is accepted."""
    secret = os.getenv("JWT_SECRET")
    if not secret:
        logger.error("JWT_SECRET is not set; rejecting token validation.")
        raise InfrastructureError(
            "Token signing secret is not configured",
            details={"setting": "JWT_SECRET"},
        )
    return secret


def decode_token(token: str) -> Dict[str, Any]:
    """Verify the signature and expiry of a bearer token and return its claims."""
    secret = get_jwt_secret()
    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise Unauthorized("Token has expired")
    except JWTClaimsError as e:
        raise Unauthorized(f"Invalid token claims: {e}")
    except JWTError as e:
        raise Unauthorized(f"Token validation failed: {e}")


def create_access_token(claims: Dict[str, Any]) -> str:
    """Sign a token with the shared secret (used by tooling and tests)."""
    return jwt.encode(claims, get_jwt_secret(), algorithm=JWT_ALGORITHM)


def get_current_user(request: Request) -> Dict[str, Any]:
    """
    FastAPI dependency to validate the JWT from the Authorization header.

    Usage:
        @router.get("/secure-data")
        def secure_endpoint(user: dict = Depends(get_current_user)):
            ...
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise Unauthorized("Authorization header is missing")

    # The token is expected to be in the format "Bearer <token>"
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthorized("Invalid authorization header format")

    return decode_token(parts[1])


def get_user_identifier(user: Dict[str, Any]) -> Optional[str]:
    """The user id carried by the token (``userId``, falling back to ``sub``)."""
    identifier = user.get("userId") or user.get("sub")
    return str(identifier) if identifier else None

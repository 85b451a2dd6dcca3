"""
Authentication module for API access control.

Admin endpoints are protected with JWT bearer tokens issued by /api/auth/login.
Passwords are stored as passlib hashes.

Dependencies:
1. get_current_user - any valid token for an active account
2. require_admin - as above, and the account must have the admin role
"""

import logging
import secrets
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from .config import config, get_db
from .database import Database, DBUser
from .database.converters import utcnow

logger = logging.getLogger(__name__)

# pbkdf2_sha256 avoids the native bcrypt dependency
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

bearer_scheme = HTTPBearer(auto_error=False)

_generated_secret: str | None = None


def get_jwt_secret() -> str:
    """Signing secret, generating a per-process one if none is configured."""
    global _generated_secret
    if config.JWT_SECRET:
        return config.JWT_SECRET
    if _generated_secret is None:
        logger.warning("JWT_SECRET not configured; tokens will not survive a restart")
        _generated_secret = secrets.token_urlsafe(32)
    return _generated_secret


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user: DBUser, expires_delta: timedelta | None = None) -> str:
    """Issue a signed JWT for a user."""
    expire = utcnow() + (expires_delta or timedelta(minutes=config.JWT_EXPIRES_MINUTES))
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "role": user.role,
        "exp": expire,
    }
    return jwt.encode(payload, get_jwt_secret(), algorithm=config.JWT_ALGORITHM)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    db: Annotated[Database, Depends(get_db)],
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> DBUser:
    """
    Resolve the user behind the bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired,
            or the account no longer exists or is deactivated
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Not authorized to access this route. No token provided.")

    try:
        payload = jwt.decode(
            credentials.credentials,
            get_jwt_secret(),
            algorithms=[config.JWT_ALGORITHM],
        )
        user_id = int(payload.get("sub"))
    except ExpiredSignatureError:
        raise _unauthorized("Token expired. Please log in again.")
    except (JWTError, TypeError, ValueError) as e:
        logger.debug(f"JWT verification failed: {e}")
        raise _unauthorized("Not authorized to access this route. Invalid token.")

    user = db.users.get_by_id(user_id)
    if not user:
        raise _unauthorized("Not authorized to access this route. User not found.")
    if not user.is_active:
        raise _unauthorized("Account is deactivated. Please contact administrator.")
    return user


def require_admin(user: Annotated[DBUser, Depends(get_current_user)]) -> DBUser:
    """Allow only admin accounts."""
    if user.role != "admin":
        logger.warning(f"Unauthorized access attempt by {user.username} ({user.role})")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"User role '{user.role}' is not authorized to access this route",
        )
    return user


CurrentUser = Annotated[DBUser, Depends(get_current_user)]
AdminUser = Annotated[DBUser, Depends(require_admin)]

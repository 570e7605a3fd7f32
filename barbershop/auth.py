import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from .config import JWT_ALGORITHM, SECRET_KEY
from .database import get_db
from .errors import AuthenticationError, AuthorizationError
from .models import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict:
    """
    Verify a bearer token and return its claims.
    Tokens are issued by the identity service; this module only verifies them.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        logger.warning("⚠️ Expired access token")
        raise AuthenticationError("Token has expired") from None
    except JWTError as e:
        logger.warning(f"⚠️ Invalid access token: {e}")
        raise AuthenticationError("Invalid authentication token") from None

    if not payload.get("sub"):
        raise AuthenticationError("Token missing subject")
    return payload


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the authenticated principal from the Authorization header"""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )

    payload = decode_access_token(credentials.credentials)

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token subject") from None

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"⚠️ Token subject {user_id} does not match any user")
        raise AuthenticationError("User not found")
    return user


def require_roles(*roles: str):
    """Route-level role guard"""

    async def _guard(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(
                f"🚫 User {current_user.id} ({current_user.role}) denied; requires {', '.join(roles)}"
            )
            raise AuthorizationError("Not authorized for this action")
        return current_user

    return _guard

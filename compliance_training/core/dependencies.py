"""
Dependency injection for FastAPI endpoints.

Access tokens are issued by the authentication service; analytics routes only
verify them and load the calling user.
"""
import logging
from typing import Optional, cast

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from compliance_training.core.config import settings
from compliance_training.core.security import decode_token
from compliance_training.db.base import get_db
from compliance_training.models.user import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_PREFIX}/auth/login")

credentials_exception = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


def _user_id_from_token(token: str) -> int:
    """Extract the user ID from an access token, or raise 401."""
    payload = decode_token(token)
    if payload is None:
        logger.warning("Rejected undecodable access token")
        raise credentials_exception
    if payload.get("type") != "access":
        logger.warning(f"Rejected token of type {payload.get('type')!r}")
        raise credentials_exception

    subject: Optional[str] = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise credentials_exception
    return int(subject)


def get_current_user(
    db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)
) -> User:
    """
    Get the user an access token was issued to.

    Raises:
        HTTPException: 401 if the token is invalid or the user no longer exists
    """
    user_id = _user_id_from_token(token)
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise credentials_exception
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Get the current user, rejecting deactivated accounts with 400."""
    if not cast(bool, current_user.is_active):
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user

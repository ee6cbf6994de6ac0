import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from odysea.core.settings import Settings, get_settings
from odysea.db.session import get_db_session
from odysea.db.models import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a password against its hash"""
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError) as e:
        logger.error(f"Password verification error: {e}")
        return False


def get_password_hash(password: str) -> str:
    """Generate a secure password hash"""
    return pwd_context.hash(password)


def create_access_token(
    data: dict,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed JWT access token"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})
    token = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    logger.info("Access token created", extra={"user_id": data.get("sub")})
    return token


def decode_access_token(token: str, settings: Settings) -> Optional[Dict[str, Any]]:
    """Return the token payload, or None when the token is invalid or expired"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None
    if not payload.get("sub") or payload.get("type") != "access":
        logger.warning("Invalid token payload")
        return None
    return payload


async def authenticate_user(email: str, password: str, session: AsyncSession) -> Optional[User]:
    """Look up a user by email and check the password"""
    email = email.strip().lower()
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user:
        logger.warning(f"Authentication failed: user not found - {email}")
        return None
    if not verify_password(password, user.password_hash):
        logger.warning(f"Authentication failed: invalid password for user - {email}")
        return None

    logger.info(f"User authenticated successfully: {user.email}")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> User:
    """Resolve the bearer token to a user or answer 401"""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    invalid_token = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized: Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(credentials.credentials, settings)
    if payload is None:
        raise invalid_token

    try:
        user_id = UUID(str(payload["sub"]))
    except ValueError:
        raise invalid_token

    user = await session.get(User, user_id)
    if not user:
        logger.warning(f"User not found for token: {user_id}")
        raise invalid_token
    return user

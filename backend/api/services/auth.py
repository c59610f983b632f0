from datetime import datetime, timedelta
from typing import Optional
import logging
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fastapi import Depends, HTTPException, Cookie
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import get_settings
from ..constants import ALL_MODULES
from ..database import get_db
from ..models.database import User, OrgModule

settings = get_settings()
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
security = HTTPBearer(auto_error=False)
logger = logging.getLogger("hr-admin.auth")


def _truncate_password(password: str, max_bytes: int = 72) -> str:
    """Truncate password to max_bytes for bcrypt compatibility."""
    password_bytes = password.encode('utf-8')
    if len(password_bytes) <= max_bytes:
        return password
    # Truncate and decode, ignoring incomplete multibyte chars
    return password_bytes[:max_bytes].decode('utf-8', errors='ignore')


def hash_password(password: str) -> str:
    """Hash password using bcrypt."""
    truncated = _truncate_password(password)
    return pwd_context.hash(truncated)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify password against hash."""
    truncated = _truncate_password(plain)
    return pwd_context.verify(truncated, hashed)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token.

    Args:
        data: Token claims (sub, token_version, ...)
        expires_delta: Optional custom expiration time. If not provided,
                      uses the default from settings.

    The token carries token_version so old tokens die on password change.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.jwt_expire_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    access_token: Optional[str] = Cookie(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current user from the Authorization header or the access_token cookie."""
    token = credentials.credentials if credentials else access_token
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
        user_id = payload.get("sub")
        token_version = payload.get("token_version", 0)
        if not user_id:
            raise HTTPException(status_code=401, detail="Invalid token")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    result = await db.execute(select(User).where(User.id == int(user_id)))
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")

    # Verify token version matches - invalidates old tokens on password change
    if user.token_version != token_version:
        raise HTTPException(status_code=401, detail="Token has been invalidated")

    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> Optional[User]:
    """Authenticate user with constant-time comparison to prevent timing attacks."""
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user:
        if verify_password(password, user.password_hash):
            return user
    else:
        # Dummy hash keeps timing equal for unknown emails
        dummy_hash = "$2b$12$LQv3c1yqBWVHxkd0LHAkCOYz6TtxMQJqhN8/LewY5GyYqVr/1fXem"
        verify_password(password, dummy_hash)

    return None


async def create_superadmin_if_not_exists(db: AsyncSession):
    """Seed the platform module catalogue and the superadmin account."""
    result = await db.execute(select(OrgModule.code))
    existing_codes = set(result.scalars().all())
    for code, name in ALL_MODULES.items():
        if code not in existing_codes:
            db.add(OrgModule(code=code, name=name, is_core=code == "dashboard"))
            logger.info(f"Module created: {code}")

    result = await db.execute(select(User).where(User.is_super_admin.is_(True)))
    if not result.scalars().first():
        db.add(User(
            email=settings.superadmin_email,
            password_hash=hash_password(settings.superadmin_password),
            first_name="Super",
            last_name="Admin",
            is_super_admin=True,
        ))
        logger.info("Superadmin created")

    await db.commit()

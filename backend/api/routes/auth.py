from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ..config import get_settings
from ..constants import MAX_FAILED_LOGIN_ATTEMPTS, ACCOUNT_LOCK_MINUTES
from ..database import get_db
from ..models.database import User
from ..models.schemas import LoginRequest, TokenResponse, UserResponse
from ..services.auth import authenticate_user, create_access_token, get_current_user
from ..limiter import limiter
from ..utils.responses import success_response

router = APIRouter()
settings = get_settings()


@router.post("/login")
@limiter.limit("5/minute")
async def login(
    request: Request,
    response: Response,
    login_request: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    # First, get the user by email (to check lockout status)
    result = await db.execute(select(User).where(User.email == login_request.email))
    user = result.scalar_one_or_none()

    if user and user.locked_until:
        if datetime.utcnow() < user.locked_until:
            remaining_minutes = int((user.locked_until - datetime.utcnow()).total_seconds() / 60) + 1
            raise HTTPException(
                status_code=423,
                detail=f"Account locked. Try again after {remaining_minutes} minutes"
            )
        # Lockout expired
        user.locked_until = None
        user.failed_login_attempts = 0
        await db.commit()

    authenticated_user = await authenticate_user(db, login_request.email, login_request.password)

    if not authenticated_user:
        if user:
            user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
            if user.failed_login_attempts >= MAX_FAILED_LOGIN_ATTEMPTS:
                user.locked_until = datetime.utcnow() + timedelta(minutes=ACCOUNT_LOCK_MINUTES)
                await db.commit()
                raise HTTPException(
                    status_code=423,
                    detail=f"Account locked due to too many failed login attempts. Try again after {ACCOUNT_LOCK_MINUTES} minutes"
                )
            await db.commit()
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not authenticated_user.is_active:
        raise HTTPException(status_code=403, detail="Account is inactive")

    authenticated_user.failed_login_attempts = 0
    authenticated_user.locked_until = None
    authenticated_user.last_login_at = datetime.utcnow()
    await db.commit()
    await db.refresh(authenticated_user)

    token = create_access_token({
        "sub": str(authenticated_user.id),
        "token_version": authenticated_user.token_version
    })
    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.jwt_expire_minutes * 60,
    )
    body = TokenResponse(access_token=token, user=UserResponse.model_validate(authenticated_user))
    return success_response(body.model_dump(mode="json"), "Login successful")


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie("access_token")
    return success_response(message="Logged out")


@router.get("/me")
async def get_me(user: User = Depends(get_current_user)):
    return success_response(UserResponse.model_validate(user).model_dump(mode="json"))

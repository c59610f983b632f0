"""
Organization user endpoints.

Users created here always belong to the organization in the URL and are
never super admins. Creation counts against the plan's user limit.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import DEFAULT_PAGE_SIZE, MODULE_USERS
from ..database import get_db
from ..errors import DuplicateError, ValidationError
from ..models.database import Role, User
from ..models.schemas import UserCreate, UserUpdate, UserResponse
from ..services.auth import hash_password
from ..services.permissions import TenantContext, require_permission, require_any_permission
from ..services.subscription import check_user_limit
from ..utils.responses import success_response, pagination_meta
from .common import get_org_object, page_params, logger

router = APIRouter()


def _dump(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json")


async def _ensure_unique_email(db: AsyncSession, email: str, exclude_id: Optional[int] = None) -> None:
    query = select(User.id).where(func.lower(User.email) == email)
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    if (await db.execute(query)).first():
        raise DuplicateError("Email already exists")


async def _check_role(db: AsyncSession, role_id: Optional[int], organization_id: int) -> None:
    if role_id is None:
        return
    result = await db.execute(
        select(Role.id).where(Role.id == role_id, Role.organization_id == organization_id)
    )
    if not result.first():
        raise ValidationError("Role not found for this organization")


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission(MODULE_USERS)),
):
    page, limit, offset = page_params(page, limit)
    query = select(User).where(User.organization_id == ctx.organization_id)

    if is_active is not None:
        query = query.where(User.is_active.is_(is_active))
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            User.email.ilike(pattern),
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
        ))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(query.order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(limit))
    return success_response(
        [_dump(u) for u in result.scalars().all()],
        "Users retrieved successfully",
        pagination=pagination_meta(page, limit, total),
    )


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_USERS, "read")),
):
    user = await get_org_object(db, User, user_id, ctx.organization_id, "User")
    return success_response(_dump(user), "User retrieved successfully")


@router.post("", status_code=201)
async def create_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_USERS, "write")),
):
    email = data.email.lower()
    await _ensure_unique_email(db, email)
    await check_user_limit(db, ctx.organization)
    await _check_role(db, data.role_id, ctx.organization_id)

    user = User(
        organization_id=ctx.organization_id,
        role_id=data.role_id,
        email=email,
        password_hash=hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        is_active=data.is_active,
        is_super_admin=False,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"User created: {user.id}", extra={"organization_id": ctx.organization_id})
    return success_response(_dump(user), "User created successfully")


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_USERS, "update")),
):
    user = await get_org_object(db, User, user_id, ctx.organization_id, "User")

    updates = data.model_dump(exclude_unset=True)
    for required in ("email", "password", "first_name", "last_name", "is_active"):
        if required in updates and updates[required] is None:
            raise ValidationError(f"{required} cannot be empty")
    if "email" in updates:
        updates["email"] = updates["email"].lower()
        await _ensure_unique_email(db, updates["email"], exclude_id=user.id)
    if "role_id" in updates:
        await _check_role(db, updates["role_id"], ctx.organization_id)

    password = updates.pop("password", None)
    if password is not None:
        user.password_hash = hash_password(password)
        # Existing tokens stop working after a password change
        user.token_version = (user.token_version or 0) + 1

    for key, value in updates.items():
        setattr(user, key, value)

    await db.commit()
    await db.refresh(user)
    return success_response(_dump(user), "User updated successfully")


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_USERS, "delete")),
):
    user = await get_org_object(db, User, user_id, ctx.organization_id, "User")
    if user.is_super_admin:
        raise ValidationError("Cannot delete super admin user")
    if user.id == ctx.user.id:
        raise ValidationError("You cannot delete your own account")

    await db.delete(user)
    await db.commit()
    logger.info(f"User deleted: {user_id}", extra={"organization_id": ctx.organization_id})
    return success_response(message="User deleted successfully")

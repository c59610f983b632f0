"""
Shared test utilities for the HR admin backend tests.

Builders for roles, users and interviews that tests need in several
variations, plus auth header creation.
"""
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from api.constants import MODULE_EMPLOYEES, MODULE_MASTER_DATA, MODULE_RECRUITMENT, MODULE_USERS
from api.models.database import (
    Organization, Role, RolePermission, User,
    Application, InterviewSchedule, InterviewStatus, InterviewMode, InterviewResult,
)
from api.services.auth import hash_password, create_access_token

ORG_MODULES = (MODULE_RECRUITMENT, MODULE_EMPLOYEES, MODULE_MASTER_DATA, MODULE_USERS)
ALL_ACTIONS = ("read", "write", "update", "delete", "approve", "export")


# ============================================================================
# USER HELPERS
# ============================================================================

async def make_role(
    db_session: AsyncSession,
    organization: Organization,
    code: str,
    actions=ALL_ACTIONS,
    module_codes=ORG_MODULES,
) -> Role:
    """Create a role with the given actions granted on each module."""
    role = Role(organization_id=organization.id, name=code.title(), code=code)
    db_session.add(role)
    await db_session.flush()
    for module_code in module_codes:
        db_session.add(RolePermission(
            role_id=role.id,
            module_code=module_code,
            **{f"can_{action}": True for action in actions}
        ))
    await db_session.commit()
    await db_session.refresh(role)
    return role


async def make_user(
    db_session: AsyncSession,
    email: str,
    organization: Optional[Organization] = None,
    role: Optional[Role] = None,
    is_super_admin: bool = False,
    password: str = "password123",
    is_active: bool = True,
) -> User:
    """Create a test user.

    Args:
        db_session: Database session
        email: User email address
        organization: Organization the user belongs to (None for platform users)
        role: Role granting module permissions
        is_super_admin: Platform super admin flag
        password: Plain text password (will be hashed)
        is_active: Whether user is active
    """
    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=email.split("@")[0].title(),
        last_name="Tester",
        organization_id=organization.id if organization else None,
        role_id=role.id if role else None,
        is_super_admin=is_super_admin,
        is_active=is_active
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def auth_headers(user: User, **extra) -> dict:
    """Create authorization headers for a user."""
    token = create_access_token({"sub": str(user.id), "token_version": user.token_version or 0})
    return {"Authorization": f"Bearer {token}", **extra}


# ============================================================================
# RECRUITMENT HELPERS
# ============================================================================

async def make_interview(
    db_session: AsyncSession,
    application: Application,
    round_name: str = "Technical",
    status: InterviewStatus = InterviewStatus.scheduled,
    result: Optional[InterviewResult] = None,
) -> InterviewSchedule:
    """Create an interview row directly, bypassing the scheduling sync."""
    interview = InterviewSchedule(
        organization_id=application.organization_id,
        application_id=application.id,
        round_name=round_name,
        interview_date=datetime.utcnow() + timedelta(days=1),
        interview_mode=InterviewMode.video,
        meeting_link="https://meet.example.com/abc",
        status=status,
        result=result,
    )
    db_session.add(interview)
    await db_session.commit()
    await db_session.refresh(interview)
    return interview


def future_iso(days: int = 1) -> str:
    return (datetime.utcnow() + timedelta(days=days)).isoformat()

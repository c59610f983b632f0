"""Subscription plan limits: max employees and max users per organization."""
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import CapacityError
from ..models.database import Employee, Organization, SubscriptionPlan, User


async def _limit(db: AsyncSession, organization: Organization, field: str):
    # Organization overrides take priority over the plan
    value = getattr(organization, field)
    if value is None and organization.subscription_plan_id is not None:
        plan = await db.get(SubscriptionPlan, organization.subscription_plan_id)
        value = getattr(plan, field) if plan else None
    return value


async def check_employee_limit(db: AsyncSession, organization: Organization) -> None:
    limit = await _limit(db, organization, "max_employees")
    if limit is None:
        return
    result = await db.execute(
        select(func.count(Employee.id)).where(Employee.organization_id == organization.id)
    )
    count = result.scalar() or 0
    if count >= limit:
        raise CapacityError(
            f"Employee limit reached ({count}/{limit}). Upgrade your subscription plan to add more employees."
        )


async def check_user_limit(db: AsyncSession, organization: Organization) -> None:
    limit = await _limit(db, organization, "max_users")
    if limit is None:
        return
    result = await db.execute(
        select(func.count(User.id)).where(User.organization_id == organization.id)
    )
    count = result.scalar() or 0
    if count >= limit:
        raise CapacityError(
            f"User limit reached ({count}/{limit}). Upgrade your subscription plan to add more users."
        )

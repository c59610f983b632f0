"""
Shared helpers for organization-scoped routes: tenant lookups and response
serialization with audit fields gated by permission.
"""
import logging
from typing import Iterable, Optional, Type

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..errors import NotFoundError
from ..models.database import User
from ..models.schemas import AUDIT_FIELDS, UserBrief
from ..services.permissions import TenantContext

logger = logging.getLogger("hr-admin.routes")


def page_params(page: int, limit: int) -> tuple:
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE) if limit else DEFAULT_PAGE_SIZE
    return page, limit, (page - 1) * limit


async def get_org_object(db: AsyncSession, model, object_id: int, organization_id: int, label: str):
    """Load a row by id inside one organization or raise NotFoundError."""
    result = await db.execute(
        select(model).where(model.id == object_id, model.organization_id == organization_id)
    )
    obj = result.scalar_one_or_none()
    if not obj:
        raise NotFoundError(f"{label} not found")
    return obj


async def load_user_briefs(db: AsyncSession, user_ids: Iterable[Optional[int]]) -> dict:
    ids = {uid for uid in user_ids if uid is not None}
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {u.id: UserBrief.model_validate(u) for u in result.scalars().all()}


async def serialize_many(
    db: AsyncSession,
    ctx: TenantContext,
    module_code: str,
    schema: Type[BaseModel],
    objects: Iterable,
    extras: Optional[dict] = None,
) -> list:
    """Dump ORM rows through schema; audit fields only for users allowed to see them.

    extras maps object id -> dict of computed fields (counts, names).
    """
    objects = list(objects)
    include_audit = await ctx.can_view_audit_info(module_code)
    users = {}
    if include_audit:
        users = await load_user_briefs(
            db, [uid for o in objects for uid in (o.created_by, o.updated_by)]
        )

    items = []
    for obj in objects:
        item = schema.model_validate(obj)
        for key, value in (extras or {}).get(obj.id, {}).items():
            setattr(item, key, value)
        if include_audit:
            item.creator = users.get(obj.created_by)
            item.updater = users.get(obj.updated_by)
            items.append(item.model_dump(mode="json"))
        else:
            items.append(item.model_dump(mode="json", exclude=AUDIT_FIELDS))
    return items


async def serialize_one(
    db: AsyncSession,
    ctx: TenantContext,
    module_code: str,
    schema: Type[BaseModel],
    obj,
    **extra,
) -> dict:
    items = await serialize_many(db, ctx, module_code, schema, [obj], {obj.id: extra})
    return items[0]

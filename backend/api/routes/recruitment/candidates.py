"""
Candidate endpoints.
"""
from typing import Optional

from fastapi import Depends, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .common import (
    logger, get_db, MODULE_RECRUITMENT, require_permission, TenantContext,
    get_org_object, page_params, serialize_many, serialize_one,
    success_response, pagination_meta,
)
from ...constants import DEFAULT_PAGE_SIZE
from ...errors import DuplicateError, ValidationError
from ...models.database import Application, Candidate, CandidateStatus, StatusEntityType
from ...models.schemas import (
    CandidateCreate, CandidateUpdate, CandidateResponse, CandidateStatusUpdate,
)
from ...services.status_log import get_status_change_history
from ...services.status_sync import set_candidate_status_manually


async def _ensure_unique_email(db: AsyncSession, organization_id: int, email: str, exclude_id: Optional[int] = None):
    query = select(Candidate.id).where(
        Candidate.organization_id == organization_id,
        func.lower(Candidate.email) == email.lower(),
    )
    if exclude_id is not None:
        query = query.where(Candidate.id != exclude_id)
    if (await db.execute(query)).first():
        raise DuplicateError("A candidate with this email already exists")


async def list_candidates(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    status: Optional[CandidateStatus] = None,
    source: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    """List candidates of the organization."""
    page, limit, offset = page_params(page, limit)
    query = select(Candidate).where(Candidate.organization_id == ctx.organization_id)

    if status:
        query = query.where(Candidate.status == status)
    if source:
        query = query.where(Candidate.source == source)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Candidate.first_name.ilike(pattern),
            Candidate.last_name.ilike(pattern),
            Candidate.email.ilike(pattern),
            Candidate.phone.ilike(pattern),
        ))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.order_by(Candidate.created_at.desc(), Candidate.id.desc()).offset(offset).limit(limit)
    )
    items = await serialize_many(db, ctx, MODULE_RECRUITMENT, CandidateResponse, result.scalars().all())
    return success_response(
        items, "Candidates retrieved successfully", pagination=pagination_meta(page, limit, total)
    )


async def create_candidate(
    data: CandidateCreate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "write")),
):
    await _ensure_unique_email(db, ctx.organization_id, data.email)

    candidate = Candidate(
        organization_id=ctx.organization_id,
        status=CandidateStatus.new,
        created_by=ctx.user.id,
        **data.model_dump(),
    )
    db.add(candidate)
    await db.commit()
    await db.refresh(candidate)

    logger.info(f"Candidate created: {candidate.id}", extra={"organization_id": ctx.organization_id})
    item = await serialize_one(db, ctx, MODULE_RECRUITMENT, CandidateResponse, candidate)
    return success_response(item, "Candidate created successfully")


async def get_candidate(
    candidate_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    candidate = await get_org_object(db, Candidate, candidate_id, ctx.organization_id, "Candidate")
    item = await serialize_one(db, ctx, MODULE_RECRUITMENT, CandidateResponse, candidate)
    return success_response(item, "Candidate retrieved successfully")


async def update_candidate(
    candidate_id: int,
    data: CandidateUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "update")),
):
    """Update candidate details. Status changes go through the status endpoint."""
    candidate = await get_org_object(db, Candidate, candidate_id, ctx.organization_id, "Candidate")

    updates = data.model_dump(exclude_unset=True)
    if "first_name" in updates and not updates["first_name"]:
        raise ValidationError("First name is required")
    if "email" in updates:
        if not updates["email"]:
            raise ValidationError("Email is required")
        await _ensure_unique_email(db, ctx.organization_id, updates["email"], exclude_id=candidate.id)

    for key, value in updates.items():
        setattr(candidate, key, value)
    candidate.updated_by = ctx.user.id

    await db.commit()
    await db.refresh(candidate)
    item = await serialize_one(db, ctx, MODULE_RECRUITMENT, CandidateResponse, candidate)
    return success_response(item, "Candidate updated successfully")


async def delete_candidate(
    candidate_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "delete")),
):
    candidate = await get_org_object(db, Candidate, candidate_id, ctx.organization_id, "Candidate")

    result = await db.execute(
        select(func.count(Application.id)).where(Application.candidate_id == candidate.id)
    )
    application_count = result.scalar() or 0
    if application_count:
        raise ValidationError(
            f"Cannot delete candidate. It has {application_count} application(s)."
        )

    await db.delete(candidate)
    await db.commit()
    logger.info(f"Candidate deleted: {candidate_id}", extra={"organization_id": ctx.organization_id})
    return success_response(message="Candidate deleted successfully")


async def update_candidate_status(
    candidate_id: int,
    data: CandidateStatusUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "update")),
):
    """Manual status override, logged with the caller's reason."""
    await set_candidate_status_manually(
        db, candidate_id, data.status, ctx.user.id,
        reason=data.reason, organization_id=ctx.organization_id,
    )
    await db.commit()

    candidate = await get_org_object(db, Candidate, candidate_id, ctx.organization_id, "Candidate")
    await db.refresh(candidate)
    item = await serialize_one(db, ctx, MODULE_RECRUITMENT, CandidateResponse, candidate)
    return success_response(item, "Candidate status updated successfully")


async def get_candidate_status_history(
    candidate_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    await get_org_object(db, Candidate, candidate_id, ctx.organization_id, "Candidate")
    history = await get_status_change_history(db, StatusEntityType.candidate, candidate_id)
    return success_response(
        [entry.model_dump(mode="json") for entry in history],
        "Status history retrieved successfully",
    )

"""
Application endpoints: a candidate applying to a job position.
"""
from datetime import date
from typing import Optional

from fastapi import Depends, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .common import (
    logger, get_db, MODULE_RECRUITMENT, require_permission, TenantContext,
    get_org_object, page_params, serialize_many,
    success_response, pagination_meta,
)
from ...constants import DEFAULT_PAGE_SIZE
from ...errors import DuplicateError, ValidationError
from ...models.database import (
    Application, ApplicationStatus, Candidate, InterviewSchedule, InterviewStatus,
    JobPosition, StatusEntityType,
)
from ...models.schemas import (
    ApplicationCreate, ApplicationUpdate, ApplicationResponse, ApplicationStatusUpdate, PipelineStage,
)
from ...services.status_log import get_status_change_history
from ...services.status_sync import recompute_candidate_status, set_application_status_manually


async def _names_for(db: AsyncSession, applications) -> dict:
    """candidate_name / job_title per application id"""
    if not applications:
        return {}
    candidate_ids = {a.candidate_id for a in applications}
    job_ids = {a.job_position_id for a in applications}

    candidates = {
        c.id: " ".join(filter(None, [c.first_name, c.last_name]))
        for c in (await db.execute(select(Candidate).where(Candidate.id.in_(candidate_ids)))).scalars()
    }
    jobs = {
        j.id: j.title
        for j in (await db.execute(select(JobPosition).where(JobPosition.id.in_(job_ids)))).scalars()
    }
    return {
        a.id: {"candidate_name": candidates.get(a.candidate_id), "job_title": jobs.get(a.job_position_id)}
        for a in applications
    }


async def _serialize(db, ctx, applications) -> list:
    return await serialize_many(
        db, ctx, MODULE_RECRUITMENT, ApplicationResponse, applications,
        await _names_for(db, applications)
    )


async def list_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    status: Optional[ApplicationStatus] = None,
    candidate_id: Optional[int] = None,
    job_position_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    page, limit, offset = page_params(page, limit)
    query = select(Application).where(Application.organization_id == ctx.organization_id)

    if status:
        query = query.where(Application.status == status)
    if candidate_id:
        query = query.where(Application.candidate_id == candidate_id)
    if job_position_id:
        query = query.where(Application.job_position_id == job_position_id)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.order_by(Application.created_at.desc(), Application.id.desc()).offset(offset).limit(limit)
    )
    items = await _serialize(db, ctx, result.scalars().all())
    return success_response(
        items, "Applications retrieved successfully", pagination=pagination_meta(page, limit, total)
    )


async def get_pipeline(
    job_position_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    """Applications grouped by status, in pipeline order."""
    query = select(Application).where(Application.organization_id == ctx.organization_id)
    if job_position_id:
        query = query.where(Application.job_position_id == job_position_id)
    result = await db.execute(query.order_by(Application.created_at.desc(), Application.id.desc()))
    applications = result.scalars().all()
    items = await _serialize(db, ctx, applications)

    stages = []
    for status in ApplicationStatus:
        stage_items = [item for item in items if item["status"] == status.value]
        stage = PipelineStage(status=status, count=len(stage_items), applications=stage_items)
        stages.append(stage.model_dump(mode="json"))
    return success_response(stages, "Pipeline retrieved successfully")


async def create_application(
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "write")),
):
    """Create an application. The candidate status is left as is until the application moves."""
    candidate = (await db.execute(
        select(Candidate).where(
            Candidate.id == data.candidate_id, Candidate.organization_id == ctx.organization_id
        )
    )).scalar_one_or_none()
    if not candidate:
        raise ValidationError("Candidate not found")

    job = (await db.execute(
        select(JobPosition).where(
            JobPosition.id == data.job_position_id, JobPosition.organization_id == ctx.organization_id
        )
    )).scalar_one_or_none()
    if not job:
        raise ValidationError("Job position not found")

    existing = await db.execute(
        select(Application.id).where(
            Application.candidate_id == data.candidate_id,
            Application.job_position_id == data.job_position_id,
        )
    )
    if existing.first():
        raise DuplicateError("This candidate has already applied for this job position")

    application = Application(
        organization_id=ctx.organization_id,
        candidate_id=data.candidate_id,
        job_position_id=data.job_position_id,
        applied_date=data.applied_date or date.today(),
        notes=data.notes,
        status=ApplicationStatus.applied,
        created_by=ctx.user.id,
    )
    db.add(application)
    await db.commit()
    await db.refresh(application)

    logger.info(
        f"Application created: {application.id} (candidate {candidate.id}, job {job.id})",
        extra={"organization_id": ctx.organization_id}
    )
    item = (await _serialize(db, ctx, [application]))[0]
    return success_response(item, "Application created successfully")


async def get_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    application = await get_org_object(db, Application, application_id, ctx.organization_id, "Application")
    item = (await _serialize(db, ctx, [application]))[0]
    return success_response(item, "Application retrieved successfully")


async def update_application(
    application_id: int,
    data: ApplicationUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "update")),
):
    """Update an application. A changed status is a manual override and cascades to the candidate."""
    application = await get_org_object(db, Application, application_id, ctx.organization_id, "Application")

    updates = data.model_dump(exclude_unset=True, exclude={"status", "reason"})
    for key, value in updates.items():
        setattr(application, key, value)
    application.updated_by = ctx.user.id

    if data.status is not None and data.status != application.status:
        await set_application_status_manually(
            db, application.id, data.status, ctx.user.id,
            reason=data.reason, organization_id=ctx.organization_id,
        )

    await db.commit()
    await db.refresh(application)
    item = (await _serialize(db, ctx, [application]))[0]
    return success_response(item, "Application updated successfully")


async def update_application_status(
    application_id: int,
    data: ApplicationStatusUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "update")),
):
    await set_application_status_manually(
        db, application_id, data.status, ctx.user.id,
        reason=data.reason, organization_id=ctx.organization_id,
    )
    await db.commit()

    application = await get_org_object(db, Application, application_id, ctx.organization_id, "Application")
    await db.refresh(application)
    item = (await _serialize(db, ctx, [application]))[0]
    return success_response(item, "Application status updated successfully")


async def delete_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "delete")),
):
    application = await get_org_object(db, Application, application_id, ctx.organization_id, "Application")

    result = await db.execute(
        select(func.count(InterviewSchedule.id)).where(
            InterviewSchedule.application_id == application.id,
            InterviewSchedule.status == InterviewStatus.completed,
        )
    )
    completed = result.scalar() or 0
    if completed:
        raise ValidationError(
            f"Cannot delete application. It has {completed} completed interview(s)."
        )

    candidate_id = application.candidate_id
    await db.delete(application)
    await db.flush()
    await recompute_candidate_status(db, candidate_id, ctx.organization_id, ctx.user.id)
    await db.commit()

    logger.info(f"Application deleted: {application_id}", extra={"organization_id": ctx.organization_id})
    return success_response(message="Application deleted successfully")


async def get_application_status_history(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    await get_org_object(db, Application, application_id, ctx.organization_id, "Application")
    history = await get_status_change_history(db, StatusEntityType.application, application_id)
    return success_response(
        [entry.model_dump(mode="json") for entry in history],
        "Status history retrieved successfully",
    )

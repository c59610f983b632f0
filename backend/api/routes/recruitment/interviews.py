"""
Interview schedule endpoints.

Scheduling moves the application to "Interview Scheduled"; recording
feedback with a result moves it to Rejected / Shortlisted / Selected.
Both cascade to the candidate through the status sync service.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .common import (
    logger, get_db, MODULE_RECRUITMENT, require_permission, TenantContext,
    get_org_object, page_params, serialize_many, serialize_one,
    success_response, pagination_meta,
)
from ...constants import DEFAULT_PAGE_SIZE, INTERVIEW_SCHEDULE_GRACE_MINUTES, REASON_MANUAL_UPDATE
from ...errors import ValidationError
from ...models.database import (
    Application, InterviewSchedule, InterviewStatus, InterviewMode, StatusEntityType, User,
)
from ...models.schemas import InterviewCreate, InterviewUpdate, InterviewFeedback, InterviewResponse
from ...services.status_log import log_status_change, status_value
from ...services.status_sync import on_interview_scheduled, apply_interview_result


async def _check_application(db: AsyncSession, application_id: int, organization_id: int) -> Application:
    result = await db.execute(
        select(Application).where(
            Application.id == application_id, Application.organization_id == organization_id
        )
    )
    application = result.scalar_one_or_none()
    if not application:
        raise ValidationError("Application not found")
    return application


async def _check_interviewer(db: AsyncSession, interviewer_id: Optional[int], organization_id: int) -> None:
    if interviewer_id is None:
        return
    result = await db.execute(
        select(User.id).where(User.id == interviewer_id, User.organization_id == organization_id)
    )
    if not result.first():
        raise ValidationError("Interviewer not found")


def _check_logistics(mode: InterviewMode, location: Optional[str], meeting_link: Optional[str]) -> None:
    if mode == InterviewMode.in_person and not location:
        raise ValidationError("Location is required for In-person interviews")
    if mode in (InterviewMode.video, InterviewMode.phone) and not meeting_link:
        raise ValidationError(f"Meeting link is required for {mode.value} interviews")


async def list_interviews(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    application_id: Optional[int] = None,
    interviewer_id: Optional[int] = None,
    status: Optional[InterviewStatus] = None,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    page, limit, offset = page_params(page, limit)
    query = select(InterviewSchedule).where(InterviewSchedule.organization_id == ctx.organization_id)

    if application_id:
        query = query.where(InterviewSchedule.application_id == application_id)
    if interviewer_id:
        query = query.where(InterviewSchedule.interviewer_id == interviewer_id)
    if status:
        query = query.where(InterviewSchedule.status == status)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.order_by(InterviewSchedule.interview_date.asc(), InterviewSchedule.id.asc())
        .offset(offset).limit(limit)
    )
    items = await serialize_many(db, ctx, MODULE_RECRUITMENT, InterviewResponse, result.scalars().all())
    return success_response(
        items, "Interviews retrieved successfully", pagination=pagination_meta(page, limit, total)
    )


async def get_interview_calendar(
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    interviewer_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    """Interviews between start_date and end_date grouped by calendar day."""
    start_date, end_date = (
        d.astimezone(timezone.utc).replace(tzinfo=None) if d.tzinfo else d for d in (start_date, end_date)
    )
    if end_date < start_date:
        raise ValidationError("End date must be after start date")

    query = select(InterviewSchedule).where(
        InterviewSchedule.organization_id == ctx.organization_id,
        InterviewSchedule.interview_date >= start_date,
        InterviewSchedule.interview_date <= end_date,
    )
    if interviewer_id:
        query = query.where(InterviewSchedule.interviewer_id == interviewer_id)

    result = await db.execute(query.order_by(InterviewSchedule.interview_date.asc(), InterviewSchedule.id.asc()))
    interviews = result.scalars().all()
    items = await serialize_many(db, ctx, MODULE_RECRUITMENT, InterviewResponse, interviews)

    by_day = {}
    for interview, item in zip(interviews, items):
        by_day.setdefault(interview.interview_date.date().isoformat(), []).append(item)
    return success_response(
        {"interviews": by_day, "total": len(items)}, "Calendar interviews retrieved successfully"
    )


async def get_my_interviews(
    status: Optional[InterviewStatus] = None,
    upcoming: bool = False,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    """Interviews assigned to the current user; upcoming keeps future open ones."""
    query = select(InterviewSchedule).where(
        InterviewSchedule.organization_id == ctx.organization_id,
        InterviewSchedule.interviewer_id == ctx.user.id,
    )
    if status:
        query = query.where(InterviewSchedule.status == status)
    if upcoming:
        query = query.where(
            InterviewSchedule.interview_date >= datetime.utcnow(),
            InterviewSchedule.status.in_([InterviewStatus.scheduled, InterviewStatus.rescheduled]),
        )

    result = await db.execute(query.order_by(InterviewSchedule.interview_date.asc(), InterviewSchedule.id.asc()))
    items = await serialize_many(db, ctx, MODULE_RECRUITMENT, InterviewResponse, result.scalars().all())
    return success_response({"interviews": items, "total": len(items)}, "My interviews retrieved successfully")


async def create_interview(
    data: InterviewCreate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "write")),
):
    """Schedule an interview and move its application to "Interview Scheduled"."""
    application = await _check_application(db, data.application_id, ctx.organization_id)
    await _check_interviewer(db, data.interviewer_id, ctx.organization_id)

    interview = InterviewSchedule(
        organization_id=ctx.organization_id,
        status=InterviewStatus.scheduled,
        created_by=ctx.user.id,
        **data.model_dump(),
    )
    db.add(interview)
    await db.flush()

    await on_interview_scheduled(db, application.id, ctx.user.id)
    await db.commit()
    await db.refresh(interview)

    logger.info(
        f"Interview scheduled: {interview.id} ({interview.round_name}) for application {application.id}",
        extra={"organization_id": ctx.organization_id}
    )
    item = await serialize_one(db, ctx, MODULE_RECRUITMENT, InterviewResponse, interview)
    return success_response(item, "Interview scheduled successfully")


async def get_interview(
    interview_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    interview = await get_org_object(db, InterviewSchedule, interview_id, ctx.organization_id, "Interview")
    item = await serialize_one(db, ctx, MODULE_RECRUITMENT, InterviewResponse, interview)
    return success_response(item, "Interview retrieved successfully")


async def update_interview(
    interview_id: int,
    data: InterviewUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "update")),
):
    """Reschedule or edit an interview. Does not touch the application status."""
    interview = await get_org_object(db, InterviewSchedule, interview_id, ctx.organization_id, "Interview")

    updates = data.model_dump(exclude_unset=True, exclude={"status", "reason"})
    if "interviewer_id" in updates:
        await _check_interviewer(db, updates["interviewer_id"], ctx.organization_id)
    if "interview_date" in updates:
        earliest = datetime.utcnow() - timedelta(minutes=INTERVIEW_SCHEDULE_GRACE_MINUTES)
        if updates["interview_date"] is None or updates["interview_date"] < earliest:
            raise ValidationError("Interview date cannot be in the past")
    if {"interview_mode", "location", "meeting_link"} & updates.keys():
        _check_logistics(
            updates.get("interview_mode") or interview.interview_mode,
            updates.get("location", interview.location),
            updates.get("meeting_link", interview.meeting_link),
        )

    for key, value in updates.items():
        setattr(interview, key, value)
    interview.updated_by = ctx.user.id

    if data.status is not None and data.status != interview.status:
        old_status = status_value(interview.status)
        interview.status = data.status
        await log_status_change(
            db, StatusEntityType.interview, interview.id, old_status, data.status,
            changed_by=ctx.user.id, reason=data.reason or REASON_MANUAL_UPDATE,
            organization_id=ctx.organization_id,
        )

    await db.commit()
    await db.refresh(interview)
    item = await serialize_one(db, ctx, MODULE_RECRUITMENT, InterviewResponse, interview)
    return success_response(item, "Interview updated successfully")


async def submit_interview_feedback(
    interview_id: int,
    data: InterviewFeedback,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "update")),
):
    """Complete an interview with feedback; a result drives the application status."""
    interview = await get_org_object(db, InterviewSchedule, interview_id, ctx.organization_id, "Interview")

    interview.feedback = data.feedback
    interview.rating = data.rating
    # A feedback edit without a result keeps the recorded one
    if "result" in data.model_fields_set:
        interview.result = data.result
    interview.status = InterviewStatus.completed
    interview.updated_by = ctx.user.id
    # The pass count below must include this interview
    await db.flush()

    if data.result is not None:
        await apply_interview_result(
            db, interview.application_id, data.result, interview.round_name, ctx.user.id
        )

    await db.commit()
    await db.refresh(interview)
    item = await serialize_one(db, ctx, MODULE_RECRUITMENT, InterviewResponse, interview)
    return success_response(item, "Interview feedback submitted successfully")


async def delete_interview(
    interview_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "delete")),
):
    interview = await get_org_object(db, InterviewSchedule, interview_id, ctx.organization_id, "Interview")
    await db.delete(interview)
    await db.commit()
    logger.info(f"Interview deleted: {interview_id}", extra={"organization_id": ctx.organization_id})
    return success_response(message="Interview deleted successfully")

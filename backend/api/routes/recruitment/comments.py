"""
Candidate comment endpoints.

Comments hang off a section of the candidate profile (section_key). Replies
are one level deep and inherit their parent's section. A CommentView row per
(user, candidate, section) marks what the user has already read.
"""
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Query
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from .common import (
    logger, get_db, MODULE_RECRUITMENT, require_permission, TenantContext,
    get_org_object, success_response,
)
from ..common import load_user_briefs
from ...constants import RECENT_COMMENTS_DAYS
from ...errors import NotFoundError, ValidationError
from ...models.database import Candidate, CandidateComment, CommentView
from ...models.schemas import CommentCreate, CommentUpdate, CommentMarkViewed, CommentResponse


async def _dump_comments(db: AsyncSession, comments, replies_by_parent: Optional[dict] = None) -> list:
    replies_by_parent = replies_by_parent or {}
    everything = list(comments) + [r for rs in replies_by_parent.values() for r in rs]
    authors = await load_user_briefs(db, [c.author_id for c in everything])

    def dump(comment: CandidateComment) -> dict:
        item = CommentResponse.model_validate(comment)
        item.author = authors.get(comment.author_id)
        item.replies = [
            CommentResponse.model_validate(r).model_copy(update={"author": authors.get(r.author_id)})
            for r in replies_by_parent.get(comment.id, [])
        ]
        return item.model_dump(mode="json")

    return [dump(c) for c in comments]


async def _get_comment(
    db: AsyncSession, comment_id: int, candidate_id: int, organization_id: int
) -> CandidateComment:
    result = await db.execute(
        select(CandidateComment).where(
            CandidateComment.id == comment_id,
            CandidateComment.candidate_id == candidate_id,
            CandidateComment.organization_id == organization_id,
        )
    )
    comment = result.scalar_one_or_none()
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


async def _last_viewed(db: AsyncSession, user_id: int, candidate_ids) -> dict:
    result = await db.execute(
        select(CommentView).where(CommentView.user_id == user_id, CommentView.candidate_id.in_(candidate_ids))
    )
    return {(v.candidate_id, v.section_key): v.last_viewed_at for v in result.scalars().all()}


async def list_candidate_comments(
    candidate_id: int,
    section_key: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    """Top-level comments newest first, each with its replies oldest first.

    stats.by_section_key counts top-level comments per section over the whole
    candidate; stats.unread_counts counts those created after the user's last
    view of that section.
    """
    await get_org_object(db, Candidate, candidate_id, ctx.organization_id, "Candidate")

    result = await db.execute(
        select(CandidateComment)
        .where(CandidateComment.candidate_id == candidate_id)
        .order_by(CandidateComment.created_at.desc(), CandidateComment.id.desc())
    )
    rows = result.scalars().all()
    top_level = [c for c in rows if c.parent_comment_id is None]

    replies_by_parent = defaultdict(list)
    for reply in sorted((c for c in rows if c.parent_comment_id is not None), key=lambda c: (c.created_at, c.id)):
        replies_by_parent[reply.parent_comment_id].append(reply)

    views = await _last_viewed(db, ctx.user.id, [candidate_id])
    by_section_key = defaultdict(int)
    unread_counts = defaultdict(int)
    for comment in top_level:
        by_section_key[comment.section_key] += 1
        last_viewed = views.get((candidate_id, comment.section_key))
        if last_viewed is None or comment.created_at > last_viewed:
            unread_counts[comment.section_key] += 1

    shown = [c for c in top_level if section_key is None or c.section_key == section_key]
    return success_response(
        {
            "comments": await _dump_comments(db, shown, replies_by_parent),
            "stats": {"by_section_key": dict(by_section_key), "unread_counts": dict(unread_counts)},
        },
        "Comments retrieved successfully",
    )


async def create_candidate_comment(
    candidate_id: int,
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "write")),
):
    await get_org_object(db, Candidate, candidate_id, ctx.organization_id, "Candidate")

    section_key = data.section_key
    if data.parent_comment_id is None:
        if not section_key:
            raise ValidationError("Section key is required for top-level comments")
    else:
        if data.rating is not None:
            raise ValidationError("Ratings are not allowed on replies")
        result = await db.execute(
            select(CandidateComment).where(
                CandidateComment.id == data.parent_comment_id,
                CandidateComment.candidate_id == candidate_id,
            )
        )
        parent = result.scalar_one_or_none()
        if not parent:
            raise NotFoundError("Parent comment not found")
        if parent.parent_comment_id is not None:
            raise ValidationError("Cannot reply to a reply. Only single-level threading is supported.")
        section_key = parent.section_key

    comment = CandidateComment(
        organization_id=ctx.organization_id,
        candidate_id=candidate_id,
        parent_comment_id=data.parent_comment_id,
        author_id=ctx.user.id,
        section_key=section_key,
        comment=data.comment,
        rating=data.rating,
        # Compared against CommentView.last_viewed_at, so same clock and precision
        created_at=datetime.utcnow(),
    )
    db.add(comment)
    await db.commit()
    await db.refresh(comment)

    logger.info(
        f"Comment {comment.id} added on candidate {candidate_id} ({section_key})",
        extra={"organization_id": ctx.organization_id}
    )
    items = await _dump_comments(db, [comment])
    return success_response(items[0], "Comment added successfully")


async def update_candidate_comment(
    candidate_id: int,
    comment_id: int,
    data: CommentUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "write")),
):
    comment = await _get_comment(db, comment_id, candidate_id, ctx.organization_id)
    if comment.author_id != ctx.user.id:
        raise HTTPException(status_code=403, detail="You can only edit your own comments")

    updates = data.model_dump(exclude_unset=True)
    if "comment" in updates and updates["comment"] is None:
        raise ValidationError("Comment text cannot be empty")
    if updates.get("rating") is not None and comment.parent_comment_id is not None:
        raise ValidationError("Ratings are not allowed on replies")

    for key, value in updates.items():
        setattr(comment, key, value)

    await db.commit()
    await db.refresh(comment)
    items = await _dump_comments(db, [comment])
    return success_response(items[0], "Comment updated successfully")


async def delete_candidate_comment(
    candidate_id: int,
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "write")),
):
    """Delete one of your own comments; a top-level comment takes its replies with it."""
    comment = await _get_comment(db, comment_id, candidate_id, ctx.organization_id)
    if comment.author_id != ctx.user.id:
        raise HTTPException(status_code=403, detail="You can only delete your own comments")

    await db.execute(delete(CandidateComment).where(CandidateComment.parent_comment_id == comment.id))
    await db.delete(comment)
    await db.commit()
    logger.info(f"Comment deleted: {comment_id}", extra={"organization_id": ctx.organization_id})
    return success_response(message="Comment deleted successfully")


async def mark_comments_viewed(
    candidate_id: int,
    data: CommentMarkViewed,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    await get_org_object(db, Candidate, candidate_id, ctx.organization_id, "Candidate")

    now = datetime.utcnow()
    result = await db.execute(
        select(CommentView).where(
            CommentView.user_id == ctx.user.id,
            CommentView.candidate_id == candidate_id,
            CommentView.section_key == data.section_key,
        )
    )
    view = result.scalar_one_or_none()
    if view:
        view.last_viewed_at = now
    else:
        db.add(CommentView(
            user_id=ctx.user.id, candidate_id=candidate_id, section_key=data.section_key, last_viewed_at=now
        ))
    await db.commit()

    return success_response(
        {"section_key": data.section_key, "marked_at": now.isoformat()}, "Comments marked as viewed"
    )


async def get_recent_comments(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_RECRUITMENT, "read")),
):
    """Comments and replies by other users in the last week, flagged unread per section."""
    since = datetime.utcnow() - timedelta(days=RECENT_COMMENTS_DAYS)
    result = await db.execute(
        select(CandidateComment, Candidate.first_name, Candidate.last_name)
        .join(Candidate, Candidate.id == CandidateComment.candidate_id)
        .where(
            CandidateComment.organization_id == ctx.organization_id,
            CandidateComment.author_id != ctx.user.id,
            CandidateComment.created_at >= since,
        )
        .order_by(CandidateComment.created_at.desc(), CandidateComment.id.desc())
        .limit(limit)
    )
    rows = result.all()
    comments = [row[0] for row in rows]
    views = await _last_viewed(db, ctx.user.id, {c.candidate_id for c in comments})

    items = await _dump_comments(db, comments)
    for item, (comment, first_name, last_name) in zip(items, rows):
        last_viewed = views.get((comment.candidate_id, comment.section_key))
        item["is_unread"] = last_viewed is None or comment.created_at > last_viewed
        item["candidate_name"] = " ".join(part for part in (first_name, last_name) if part)
        item.pop("replies")
    return success_response(items, "Recent comments retrieved successfully")

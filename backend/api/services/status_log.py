"""
Status change audit log.

Append-only record of Candidate / Application / Interview status transitions.
Rows are only ever inserted here; nothing updates or deletes them.
"""
import logging
from typing import List, Optional, Union
from enum import Enum

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..constants import REASON_DEFAULT
from ..models.database import StatusChangeLog, StatusEntityType, User
from ..models.schemas import StatusChangeLogResponse, UserBrief

logger = logging.getLogger("hr-admin.status-log")


def status_value(status: Union[Enum, str, None]) -> Optional[str]:
    """Plain string form of a status enum member (or pass-through for strings)."""
    if status is None:
        return None
    return status.value if isinstance(status, Enum) else str(status)


async def log_status_change(
    db: AsyncSession,
    entity_type: StatusEntityType,
    entity_id: int,
    old_status: Union[Enum, str, None],
    new_status: Union[Enum, str],
    changed_by: Optional[int] = None,
    reason: Optional[str] = None,
    organization_id: Optional[int] = None,
) -> StatusChangeLog:
    """Stage one log row in the current transaction.

    Write failures propagate so the caller's whole status change rolls back
    with it.
    """
    entry = StatusChangeLog(
        organization_id=organization_id,
        entity_type=entity_type,
        entity_id=entity_id,
        old_status=status_value(old_status),
        new_status=status_value(new_status),
        changed_by=changed_by if changed_by is not None else get_settings().system_user_id,
        reason=reason or REASON_DEFAULT,
    )
    db.add(entry)
    await db.flush()

    logger.info(
        f"{entity_type.value} #{entity_id}: {entry.old_status} -> {entry.new_status}",
        extra={
            "entity_type": entity_type.value,
            "entity_id": entity_id,
            "changed_by": entry.changed_by,
            "organization_id": organization_id,
        }
    )
    return entry


async def get_status_change_history(
    db: AsyncSession,
    entity_type: StatusEntityType,
    entity_id: int,
) -> List[StatusChangeLogResponse]:
    """History of one entity, newest first, with the acting user when known."""
    result = await db.execute(
        select(StatusChangeLog)
        .where(
            StatusChangeLog.entity_type == entity_type,
            StatusChangeLog.entity_id == entity_id,
        )
        .order_by(desc(StatusChangeLog.created_at), desc(StatusChangeLog.id))
    )
    entries = result.scalars().all()
    if not entries:
        return []

    user_ids = {e.changed_by for e in entries}
    users_result = await db.execute(select(User).where(User.id.in_(user_ids)))
    users = {u.id: u for u in users_result.scalars().all()}

    history = []
    for entry in entries:
        item = StatusChangeLogResponse.model_validate(entry)
        user = users.get(entry.changed_by)
        if user:
            item.user = UserBrief.model_validate(user)
        history.append(item)
    return history

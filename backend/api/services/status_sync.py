"""
Recruitment status synchronization.

Keeps Candidate, Application and InterviewSchedule statuses consistent:

- scheduling an interview moves the application to "Interview Scheduled";
- an interview result moves the application to Rejected / Shortlisted / Selected;
- after any application status write the candidate status is recomputed
  from all of the candidate's applications.

Every function only stages changes on the session (add + flush). The route
that calls it commits once, so the triggering write, the cascade and the
audit rows land in one transaction.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import (
    FINAL_ROUND_KEYWORDS, FINAL_ROUND_PASS_THRESHOLD,
    REASON_INTERVIEW_SCHEDULED, REASON_CANDIDATE_AUTO_UPDATE, REASON_MANUAL_UPDATE,
)
from ..errors import NotFoundError
from ..models.database import (
    Application, ApplicationStatus, Candidate, CandidateStatus,
    InterviewSchedule, InterviewStatus, InterviewResult, StatusEntityType,
    ACTIVE_APPLICATION_STATUSES, TERMINAL_APPLICATION_STATUSES,
)
from .status_log import log_status_change, status_value

logger = logging.getLogger("hr-admin.status-sync")


@dataclass
class StatusTransition:
    """One status change written by the engine."""
    entity_type: StatusEntityType
    entity_id: int
    old_status: Optional[str]
    new_status: str
    reason: str


# ==================== DERIVATION RULES ====================

def derive_candidate_status(statuses: Iterable[ApplicationStatus]) -> Optional[CandidateStatus]:
    """Candidate status implied by its applications, or None for "leave as is".

    Precedence: any Selected > all Rejected > any still active.
    """
    statuses = [ApplicationStatus(s) for s in statuses]
    if not statuses:
        return None
    if ApplicationStatus.selected in statuses:
        return CandidateStatus.selected
    if all(s == ApplicationStatus.rejected for s in statuses):
        return CandidateStatus.rejected
    if any(s in ACTIVE_APPLICATION_STATUSES for s in statuses):
        return CandidateStatus.in_process
    return None


def is_final_round(round_name: str, passed_rounds: int) -> bool:
    name = (round_name or "").lower()
    if any(keyword in name for keyword in FINAL_ROUND_KEYWORDS):
        return True
    return passed_rounds >= FINAL_ROUND_PASS_THRESHOLD


def derive_status_from_result(
    current: ApplicationStatus,
    result: Optional[InterviewResult],
    round_name: str,
    passed_rounds: int,
) -> Optional[tuple]:
    """(new_status, reason) for an interview result, or None when nothing changes.

    passed_rounds must already include the interview being evaluated.
    """
    current = ApplicationStatus(current)

    if result == InterviewResult.failed:
        if current == ApplicationStatus.rejected:
            return None
        return ApplicationStatus.rejected, f"Failed {round_name} interview"

    if result == InterviewResult.passed:
        if current in TERMINAL_APPLICATION_STATUSES:
            return None
        if is_final_round(round_name, passed_rounds):
            new_status = ApplicationStatus.selected
            reason = f"Passed all interview rounds including {round_name}"
        else:
            new_status = ApplicationStatus.shortlisted
            reason = f"Passed {round_name} interview, moving to next round"
        if new_status == current:
            return None
        return new_status, reason

    # On Hold or no result
    return None


# ==================== CASCADE ====================

async def _set_application_status(
    db: AsyncSession,
    application: Application,
    new_status: ApplicationStatus,
    reason: str,
    triggered_by: Optional[int],
) -> StatusTransition:
    old_status = status_value(application.status)
    application.status = new_status
    if triggered_by is not None:
        application.updated_by = triggered_by
    await log_status_change(
        db, StatusEntityType.application, application.id,
        old_status, new_status,
        changed_by=triggered_by, reason=reason,
        organization_id=application.organization_id,
    )
    return StatusTransition(
        StatusEntityType.application, application.id, old_status, new_status.value, reason
    )


async def recompute_candidate_status(
    db: AsyncSession,
    candidate_id: int,
    organization_id: Optional[int] = None,
    triggered_by: Optional[int] = None,
) -> List[StatusTransition]:
    """Re-derive a candidate's status from all of its applications.

    Writes (and logs) only when the derived status differs from the stored one,
    so running it twice in a row produces no second log row.
    """
    query = select(Candidate).where(Candidate.id == candidate_id)
    if organization_id is not None:
        query = query.where(Candidate.organization_id == organization_id)
    candidate = (await db.execute(query)).scalar_one_or_none()
    if not candidate:
        logger.error(f"Status recompute skipped: candidate {candidate_id} not found")
        return []

    result = await db.execute(
        select(Application.status).where(Application.candidate_id == candidate_id)
    )
    new_status = derive_candidate_status(result.scalars().all())
    if new_status is None or new_status == candidate.status:
        return []

    old_status = status_value(candidate.status)
    candidate.status = new_status
    if triggered_by is not None:
        candidate.updated_by = triggered_by
    await log_status_change(
        db, StatusEntityType.candidate, candidate.id,
        old_status, new_status,
        changed_by=triggered_by, reason=REASON_CANDIDATE_AUTO_UPDATE,
        organization_id=candidate.organization_id,
    )
    return [StatusTransition(
        StatusEntityType.candidate, candidate.id, old_status, new_status.value,
        REASON_CANDIDATE_AUTO_UPDATE
    )]


async def on_interview_scheduled(
    db: AsyncSession,
    application_id: int,
    triggered_by: Optional[int] = None,
) -> List[StatusTransition]:
    """Move the application to "Interview Scheduled" unless it is already there or terminal."""
    application = await db.get(Application, application_id)
    if not application:
        logger.error(f"Interview scheduling sync skipped: application {application_id} not found")
        return []

    current = ApplicationStatus(application.status)
    if current == ApplicationStatus.interview_scheduled or current in TERMINAL_APPLICATION_STATUSES:
        return []

    transitions = [await _set_application_status(
        db, application, ApplicationStatus.interview_scheduled,
        REASON_INTERVIEW_SCHEDULED, triggered_by
    )]
    transitions += await recompute_candidate_status(
        db, application.candidate_id, application.organization_id, triggered_by
    )
    return transitions


async def count_passed_rounds(db: AsyncSession, application_id: int) -> int:
    result = await db.execute(
        select(func.count(InterviewSchedule.id)).where(
            InterviewSchedule.application_id == application_id,
            InterviewSchedule.status == InterviewStatus.completed,
            InterviewSchedule.result == InterviewResult.passed,
        )
    )
    return result.scalar() or 0


async def apply_interview_result(
    db: AsyncSession,
    application_id: int,
    result: Optional[InterviewResult],
    round_name: str,
    triggered_by: Optional[int] = None,
) -> List[StatusTransition]:
    """Apply a completed interview's result to its application, then cascade.

    The interview row must already be flushed as Completed with its result so
    the pass count includes it.
    """
    application = await db.get(Application, application_id)
    if not application:
        logger.error(f"Interview result sync skipped: application {application_id} not found")
        return []

    passed_rounds = 0
    if result == InterviewResult.passed:
        passed_rounds = await count_passed_rounds(db, application_id)

    change = derive_status_from_result(application.status, result, round_name, passed_rounds)
    if change is None:
        return []

    new_status, reason = change
    transitions = [await _set_application_status(db, application, new_status, reason, triggered_by)]
    transitions += await recompute_candidate_status(
        db, application.candidate_id, application.organization_id, triggered_by
    )
    return transitions


# ==================== MANUAL OVERRIDE ====================

async def set_candidate_status_manually(
    db: AsyncSession,
    candidate_id: int,
    new_status: CandidateStatus,
    user_id: Optional[int],
    reason: Optional[str] = None,
    organization_id: Optional[int] = None,
) -> List[StatusTransition]:
    """Set a candidate status directly, bypassing derivation. Always logged."""
    query = select(Candidate).where(Candidate.id == candidate_id)
    if organization_id is not None:
        query = query.where(Candidate.organization_id == organization_id)
    candidate = (await db.execute(query)).scalar_one_or_none()
    if not candidate:
        raise NotFoundError("Candidate not found")

    new_status = CandidateStatus(new_status)
    reason = reason or REASON_MANUAL_UPDATE
    old_status = status_value(candidate.status)
    candidate.status = new_status
    candidate.updated_by = user_id
    await log_status_change(
        db, StatusEntityType.candidate, candidate.id, old_status, new_status,
        changed_by=user_id, reason=reason, organization_id=candidate.organization_id,
    )
    return [StatusTransition(StatusEntityType.candidate, candidate.id, old_status, new_status.value, reason)]


async def set_application_status_manually(
    db: AsyncSession,
    application_id: int,
    new_status: ApplicationStatus,
    user_id: Optional[int],
    reason: Optional[str] = None,
    organization_id: Optional[int] = None,
) -> List[StatusTransition]:
    """Set an application status directly, log it, then recompute the candidate."""
    query = select(Application).where(Application.id == application_id)
    if organization_id is not None:
        query = query.where(Application.organization_id == organization_id)
    application = (await db.execute(query)).scalar_one_or_none()
    if not application:
        raise NotFoundError("Application not found")

    transitions = [await _set_application_status(
        db, application, ApplicationStatus(new_status),
        reason or REASON_MANUAL_UPDATE, user_id
    )]
    transitions += await recompute_candidate_status(
        db, application.candidate_id, application.organization_id, user_id
    )
    return transitions

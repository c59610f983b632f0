"""
Tests for the status change audit log service.
"""
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.models.database import (
    Candidate, CandidateStatus, ApplicationStatus, StatusChangeLog, StatusEntityType, User,
)
from api.services.status_log import get_status_change_history, log_status_change, status_value


class TestStatusValue:

    def test_enum_member(self):
        assert status_value(ApplicationStatus.interview_scheduled) == "Interview Scheduled"

    def test_plain_string_and_none(self):
        assert status_value("Applied") == "Applied"
        assert status_value(None) is None


class TestLogStatusChange:

    async def test_writes_one_row(self, db_session: AsyncSession, candidate: Candidate, admin_user: User):
        entry = await log_status_change(
            db_session, StatusEntityType.candidate, candidate.id,
            CandidateStatus.new, CandidateStatus.in_process,
            changed_by=admin_user.id, reason="Testing", organization_id=candidate.organization_id,
        )
        await db_session.commit()

        rows = (await db_session.execute(select(StatusChangeLog))).scalars().all()
        assert len(rows) == 1
        assert rows[0].id == entry.id
        assert rows[0].old_status == "New"
        assert rows[0].new_status == "In Process"
        assert rows[0].changed_by == admin_user.id
        assert rows[0].organization_id == candidate.organization_id

    async def test_defaults_reason_and_actor(self, db_session: AsyncSession, candidate: Candidate):
        entry = await log_status_change(
            db_session, StatusEntityType.candidate, candidate.id, None, CandidateStatus.new
        )
        assert entry.reason == "Status updated"
        assert entry.changed_by == 1
        assert entry.old_status is None

    async def test_emits_log_record(self, db_session: AsyncSession, candidate: Candidate, caplog):
        with caplog.at_level("INFO", logger="hr-admin.status-log"):
            await log_status_change(
                db_session, StatusEntityType.candidate, candidate.id, "New", "Selected"
            )
        assert any(f"Candidate #{candidate.id}: New -> Selected" in r.getMessage() for r in caplog.records)


class TestStatusHistory:

    async def test_newest_first_with_user(
        self, db_session: AsyncSession, candidate: Candidate, admin_user: User
    ):
        for old, new in (("New", "In Process"), ("In Process", "On Hold"), ("On Hold", "Selected")):
            await log_status_change(
                db_session, StatusEntityType.candidate, candidate.id, old, new, changed_by=admin_user.id
            )
        await db_session.commit()

        history = await get_status_change_history(db_session, StatusEntityType.candidate, candidate.id)

        assert [h.new_status for h in history] == ["Selected", "On Hold", "In Process"]
        assert history[0].user is not None
        assert history[0].user.email == admin_user.email

    async def test_unknown_actor_has_no_user(self, db_session: AsyncSession, candidate: Candidate):
        await log_status_change(
            db_session, StatusEntityType.candidate, candidate.id, "New", "Rejected", changed_by=9999
        )
        await db_session.commit()

        history = await get_status_change_history(db_session, StatusEntityType.candidate, candidate.id)
        assert len(history) == 1
        assert history[0].changed_by == 9999
        assert history[0].user is None

    async def test_scoped_to_entity(self, db_session: AsyncSession, candidate: Candidate):
        await log_status_change(db_session, StatusEntityType.candidate, candidate.id, "New", "Rejected")
        await log_status_change(db_session, StatusEntityType.application, candidate.id, "Applied", "Rejected")
        await db_session.commit()

        history = await get_status_change_history(db_session, StatusEntityType.candidate, candidate.id)
        assert len(history) == 1
        assert history[0].entity_type == StatusEntityType.candidate

    @pytest.mark.parametrize("entity_type", list(StatusEntityType))
    async def test_empty_history(self, db_session: AsyncSession, entity_type):
        assert await get_status_change_history(db_session, entity_type, 1) == []

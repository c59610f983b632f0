"""
Tests for interview endpoints and the status changes they drive.
"""
from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.models.database import (
    Application, ApplicationStatus, Candidate, CandidateStatus, InterviewSchedule, InterviewStatus,
    StatusChangeLog, StatusEntityType, User,
)
from helpers import auth_headers, future_iso, make_interview

BASE = "/api/acme/recruitment/interviews"


def interview_payload(application: Application, round_name: str = "Technical", **overrides) -> dict:
    payload = {
        "application_id": application.id,
        "round_name": round_name,
        "interview_date": future_iso(),
        "interview_mode": "Video",
        "meeting_link": "https://meet.example.com/xyz",
    }
    payload.update(overrides)
    return payload


async def log_rows(db_session: AsyncSession):
    result = await db_session.execute(select(StatusChangeLog).order_by(StatusChangeLog.id))
    return result.scalars().all()


class TestScheduleInterview:

    async def test_schedule_moves_application_and_candidate(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User,
        candidate: Candidate, application: Application
    ):
        response = await client.post(BASE, json=interview_payload(application), headers=auth_headers(admin_user))

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "Scheduled"
        assert data["round_name"] == "Technical"

        await db_session.refresh(application)
        await db_session.refresh(candidate)
        assert application.status == ApplicationStatus.interview_scheduled
        assert candidate.status == CandidateStatus.in_process
        assert len(await log_rows(db_session)) == 2

    @pytest.mark.parametrize("terminal", [ApplicationStatus.selected, ApplicationStatus.rejected])
    async def test_schedule_for_terminal_application(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User,
        application: Application, terminal
    ):
        application.status = terminal
        await db_session.commit()

        response = await client.post(BASE, json=interview_payload(application), headers=auth_headers(admin_user))

        assert response.status_code == 201
        await db_session.refresh(application)
        assert application.status == terminal
        assert await log_rows(db_session) == []

    async def test_in_person_requires_location(self, client: AsyncClient, admin_user: User, application: Application):
        response = await client.post(
            BASE,
            json=interview_payload(application, interview_mode="In-person", meeting_link=None),
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 400
        assert "Location is required" in response.json()["errors"][0]["message"]

    async def test_past_date_rejected(self, client: AsyncClient, admin_user: User, application: Application):
        past = (datetime.utcnow() - timedelta(days=1)).isoformat()
        response = await client.post(
            BASE, json=interview_payload(application, interview_date=past), headers=auth_headers(admin_user)
        )

        assert response.status_code == 400
        assert "in the past" in response.json()["errors"][0]["message"]

    async def test_unknown_application(self, client: AsyncClient, admin_user: User, application: Application):
        payload = interview_payload(application, application_id=9999)
        response = await client.post(BASE, json=payload, headers=auth_headers(admin_user))

        assert response.status_code == 400
        assert response.json()["message"] == "Application not found"

    async def test_interviewer_must_belong_to_organization(
        self, client: AsyncClient, admin_user: User, outsider_user: User, application: Application
    ):
        response = await client.post(
            BASE,
            json=interview_payload(application, interviewer_id=outsider_user.id),
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Interviewer not found"


class TestInterviewFeedback:

    async def test_fail_rejects(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User,
        candidate: Candidate, application: Application
    ):
        headers = auth_headers(admin_user)
        created = await client.post(BASE, json=interview_payload(application), headers=headers)
        interview_id = created.json()["data"]["id"]

        response = await client.patch(
            f"{BASE}/{interview_id}/feedback",
            json={"feedback": "Struggled with basics", "rating": 3, "result": "Fail"},
            headers=headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "Completed"
        assert data["result"] == "Fail"

        await db_session.refresh(application)
        await db_session.refresh(candidate)
        assert application.status == ApplicationStatus.rejected
        assert candidate.status == CandidateStatus.rejected

        rows = await log_rows(db_session)
        assert [(r.entity_type, r.new_status) for r in rows] == [
            (StatusEntityType.application, "Interview Scheduled"),
            (StatusEntityType.candidate, "In Process"),
            (StatusEntityType.application, "Rejected"),
            (StatusEntityType.candidate, "Rejected"),
        ]
        assert rows[2].reason == "Failed Technical interview"

    async def test_final_round_pass_selects(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User,
        candidate: Candidate, application: Application
    ):
        headers = auth_headers(admin_user)
        created = await client.post(BASE, json=interview_payload(application, "Final Round"), headers=headers)

        await client.patch(
            f"{BASE}/{created.json()['data']['id']}/feedback",
            json={"feedback": "Excellent", "rating": 9, "result": "Pass"},
            headers=headers,
        )

        await db_session.refresh(application)
        await db_session.refresh(candidate)
        assert application.status == ApplicationStatus.selected
        assert candidate.status == CandidateStatus.selected

    async def test_three_passes_select(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User, application: Application
    ):
        headers = auth_headers(admin_user)
        seen = []
        for round_name in ("Technical", "Coding", "Technical Round 2"):
            created = await client.post(BASE, json=interview_payload(application, round_name), headers=headers)
            await client.patch(
                f"{BASE}/{created.json()['data']['id']}/feedback",
                json={"feedback": "Good", "result": "Pass"},
                headers=headers,
            )
            await db_session.refresh(application)
            seen.append(application.status)

        assert seen == [ApplicationStatus.shortlisted, ApplicationStatus.shortlisted, ApplicationStatus.selected]

    async def test_feedback_edit_keeps_recorded_result(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User, application: Application
    ):
        headers = auth_headers(admin_user)
        ids = []
        for round_name in ("Technical 1", "Technical 2", "Technical 3"):
            created = await client.post(BASE, json=interview_payload(application, round_name), headers=headers)
            ids.append(created.json()["data"]["id"])

        await client.patch(f"{BASE}/{ids[0]}/feedback", json={"feedback": "Good", "result": "Pass"}, headers=headers)
        edited = await client.patch(
            f"{BASE}/{ids[0]}/feedback", json={"feedback": "Good, strong on design"}, headers=headers
        )
        assert edited.json()["data"]["result"] == "Pass"
        assert edited.json()["data"]["feedback"] == "Good, strong on design"

        for interview_id in ids[1:]:
            await client.patch(
                f"{BASE}/{interview_id}/feedback", json={"feedback": "Good", "result": "Pass"}, headers=headers
            )

        await db_session.refresh(application)
        assert application.status == ApplicationStatus.selected

    async def test_feedback_without_result_only_completes(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User, application: Application
    ):
        interview = await make_interview(db_session, application)

        response = await client.patch(
            f"{BASE}/{interview.id}/feedback", json={"feedback": "Notes only"}, headers=auth_headers(admin_user)
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "Completed"
        await db_session.refresh(application)
        assert application.status == ApplicationStatus.applied

    async def test_rating_out_of_range(self, client: AsyncClient, db_session, admin_user: User, application):
        interview = await make_interview(db_session, application)

        response = await client.patch(
            f"{BASE}/{interview.id}/feedback",
            json={"feedback": "Great", "rating": 11},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 400

    async def test_feedback_required(self, client: AsyncClient, db_session, admin_user: User, application):
        interview = await make_interview(db_session, application)

        response = await client.patch(
            f"{BASE}/{interview.id}/feedback", json={"feedback": ""}, headers=auth_headers(admin_user)
        )
        assert response.status_code == 400


class TestInterviewUpdate:

    async def test_reschedule(self, client: AsyncClient, db_session, admin_user: User, application: Application):
        interview = await make_interview(db_session, application)
        new_date = future_iso(days=7)

        response = await client.put(
            f"{BASE}/{interview.id}", json={"interview_date": new_date}, headers=auth_headers(admin_user)
        )

        assert response.status_code == 200
        assert response.json()["data"]["interview_date"].startswith(new_date[:16])

    async def test_switch_to_phone_needs_link(
        self, client: AsyncClient, db_session, admin_user: User, application: Application
    ):
        interview = await make_interview(db_session, application)

        response = await client.put(
            f"{BASE}/{interview.id}",
            json={"interview_mode": "Phone", "meeting_link": None},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Meeting link is required for Phone interviews"

    async def test_status_change_is_logged(
        self, client: AsyncClient, db_session, admin_user: User, application: Application
    ):
        interview = await make_interview(db_session, application)

        response = await client.put(
            f"{BASE}/{interview.id}",
            json={"status": "Cancelled", "reason": "Candidate unavailable"},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 200
        rows = await log_rows(db_session)
        assert len(rows) == 1
        assert rows[0].entity_type == StatusEntityType.interview
        assert rows[0].old_status == "Scheduled"
        assert rows[0].new_status == "Cancelled"
        assert rows[0].reason == "Candidate unavailable"
        await db_session.refresh(application)
        assert application.status == ApplicationStatus.applied

    async def test_delete_interview(self, client: AsyncClient, db_session, admin_user: User, application: Application):
        interview = await make_interview(db_session, application)
        interview_id = interview.id

        response = await client.delete(f"{BASE}/{interview_id}", headers=auth_headers(admin_user))

        assert response.status_code == 200
        assert await db_session.get(InterviewSchedule, interview_id) is None

    async def test_list_by_application(self, client: AsyncClient, db_session, admin_user: User, application):
        await make_interview(db_session, application, "Technical")
        await make_interview(db_session, application, "Coding")

        response = await client.get(
            BASE, params={"application_id": application.id}, headers=auth_headers(admin_user)
        )

        data = response.json()
        assert data["pagination"]["total"] == 2
        assert {i["round_name"] for i in data["data"]} == {"Technical", "Coding"}


class TestInterviewViews:

    async def test_calendar_groups_by_day(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User, application: Application
    ):
        first = await make_interview(db_session, application, "Technical")
        second = await make_interview(db_session, application, "Coding")
        later = await make_interview(db_session, application, "HR")
        later.interview_date = first.interview_date + timedelta(days=2)
        outside = await make_interview(db_session, application, "Final Round")
        outside.interview_date = first.interview_date + timedelta(days=30)
        await db_session.commit()

        start = first.interview_date - timedelta(hours=1)
        response = await client.get(
            f"{BASE}/calendar",
            params={"start_date": start.isoformat(), "end_date": (start + timedelta(days=7)).isoformat()},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 3
        first_day = first.interview_date.date().isoformat()
        assert {i["id"] for i in data["interviews"][first_day]} == {first.id, second.id}
        assert [i["id"] for i in data["interviews"][later.interview_date.date().isoformat()]] == [later.id]

    async def test_calendar_needs_range(self, client: AsyncClient, admin_user: User):
        response = await client.get(f"{BASE}/calendar", headers=auth_headers(admin_user))

        assert response.status_code == 400

    async def test_calendar_range_order(self, client: AsyncClient, admin_user: User):
        response = await client.get(
            f"{BASE}/calendar",
            params={"start_date": future_iso(days=5), "end_date": future_iso(days=1)},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "End date must be after start date"

    async def test_my_interviews(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User,
        recruiter_user: User, application: Application
    ):
        mine = await make_interview(db_session, application, "Technical")
        done = await make_interview(db_session, application, "Coding", status=InterviewStatus.completed)
        past = await make_interview(db_session, application, "Screening")
        other = await make_interview(db_session, application, "HR")
        mine.interviewer_id = done.interviewer_id = past.interviewer_id = recruiter_user.id
        past.interview_date = datetime.utcnow() - timedelta(days=2)
        other.interviewer_id = admin_user.id
        await db_session.commit()

        headers = auth_headers(recruiter_user)
        response = await client.get(f"{BASE}/my-interviews", headers=headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 3
        assert {i["id"] for i in data["interviews"]} == {mine.id, done.id, past.id}

        upcoming = await client.get(f"{BASE}/my-interviews", params={"upcoming": "true"}, headers=headers)
        assert [i["id"] for i in upcoming.json()["data"]["interviews"]] == [mine.id]

        completed = await client.get(f"{BASE}/my-interviews", params={"status": "Completed"}, headers=headers)
        assert [i["id"] for i in completed.json()["data"]["interviews"]] == [done.id]

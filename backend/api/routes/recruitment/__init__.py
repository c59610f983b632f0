"""
Recruitment API routes package.

- candidates: candidate CRUD, manual status override, status history
- applications: application CRUD, pipeline view, manual status override
- interviews: scheduling and feedback (drive the status sync service), calendar, my interviews
- comments: section comments on a candidate, read markers, recent comments
"""
from fastapi import APIRouter

from .candidates import (
    list_candidates,
    create_candidate,
    get_candidate,
    update_candidate,
    delete_candidate,
    update_candidate_status,
    get_candidate_status_history,
)
from .applications import (
    list_applications,
    get_pipeline,
    create_application,
    get_application,
    update_application,
    update_application_status,
    delete_application,
    get_application_status_history,
)
from .interviews import (
    list_interviews,
    get_interview_calendar,
    get_my_interviews,
    create_interview,
    get_interview,
    update_interview,
    submit_interview_feedback,
    delete_interview,
)
from .comments import (
    list_candidate_comments,
    create_candidate_comment,
    update_candidate_comment,
    delete_candidate_comment,
    mark_comments_viewed,
    get_recent_comments,
)

# Mounted at /api/{org_slug}/recruitment in main.py
router = APIRouter()

# Candidates
router.add_api_route("/candidates", list_candidates, methods=["GET"], tags=["candidates"])
router.add_api_route("/candidates", create_candidate, methods=["POST"], status_code=201, tags=["candidates"])
router.add_api_route("/candidates/{candidate_id}", get_candidate, methods=["GET"], tags=["candidates"])
router.add_api_route("/candidates/{candidate_id}", update_candidate, methods=["PUT"], tags=["candidates"])
router.add_api_route("/candidates/{candidate_id}", delete_candidate, methods=["DELETE"], tags=["candidates"])
router.add_api_route("/candidates/{candidate_id}/status", update_candidate_status, methods=["PATCH"], tags=["candidates"])
router.add_api_route("/candidates/{candidate_id}/status-history", get_candidate_status_history, methods=["GET"], tags=["candidates"])

# Applications: /pipeline must be before /{application_id}
router.add_api_route("/applications/pipeline", get_pipeline, methods=["GET"], tags=["applications"])
router.add_api_route("/applications", list_applications, methods=["GET"], tags=["applications"])
router.add_api_route("/applications", create_application, methods=["POST"], status_code=201, tags=["applications"])
router.add_api_route("/applications/{application_id}", get_application, methods=["GET"], tags=["applications"])
router.add_api_route("/applications/{application_id}", update_application, methods=["PUT"], tags=["applications"])
router.add_api_route("/applications/{application_id}", delete_application, methods=["DELETE"], tags=["applications"])
router.add_api_route("/applications/{application_id}/status", update_application_status, methods=["PATCH"], tags=["applications"])
router.add_api_route("/applications/{application_id}/status-history", get_application_status_history, methods=["GET"], tags=["applications"])

# Interviews: /calendar and /my-interviews must be before /{interview_id}
router.add_api_route("/interviews/calendar", get_interview_calendar, methods=["GET"], tags=["interviews"])
router.add_api_route("/interviews/my-interviews", get_my_interviews, methods=["GET"], tags=["interviews"])
router.add_api_route("/interviews", list_interviews, methods=["GET"], tags=["interviews"])
router.add_api_route("/interviews", create_interview, methods=["POST"], status_code=201, tags=["interviews"])
router.add_api_route("/interviews/{interview_id}", get_interview, methods=["GET"], tags=["interviews"])
router.add_api_route("/interviews/{interview_id}", update_interview, methods=["PUT"], tags=["interviews"])
router.add_api_route("/interviews/{interview_id}", delete_interview, methods=["DELETE"], tags=["interviews"])
router.add_api_route("/interviews/{interview_id}/feedback", submit_interview_feedback, methods=["PATCH"], tags=["interviews"])

# Candidate comments
router.add_api_route("/candidates/{candidate_id}/comments", list_candidate_comments, methods=["GET"], tags=["comments"])
router.add_api_route("/candidates/{candidate_id}/comments", create_candidate_comment, methods=["POST"], status_code=201, tags=["comments"])
router.add_api_route("/candidates/{candidate_id}/comments/mark-viewed", mark_comments_viewed, methods=["POST"], tags=["comments"])
router.add_api_route("/candidates/{candidate_id}/comments/{comment_id}", update_candidate_comment, methods=["PUT"], tags=["comments"])
router.add_api_route("/candidates/{candidate_id}/comments/{comment_id}", delete_candidate_comment, methods=["DELETE"], tags=["comments"])
router.add_api_route("/dashboard/recent-comments", get_recent_comments, methods=["GET"], tags=["comments"])

__all__ = ["router"]

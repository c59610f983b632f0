from .database import (
    Base, SubscriptionPlan, Organization, OrgModule, OrganizationModule,
    Role, RolePermission, User, Department, Designation,
    OrganizationalPosition, Employee, JobPosition, Candidate, Application,
    InterviewSchedule, CandidateComment, CommentView, StatusChangeLog,
    CandidateStatus, ApplicationStatus, InterviewStatus, InterviewResult,
    InterviewMode, EmployeeStatus, StatusEntityType, OrgStatus,
)
from .schemas import (
    LoginRequest, TokenResponse, UserResponse, UserCreate, UserUpdate,
    CandidateCreate, CandidateUpdate, CandidateResponse, CandidateStatusUpdate,
    ApplicationCreate, ApplicationUpdate, ApplicationResponse, ApplicationStatusUpdate,
    InterviewCreate, InterviewUpdate, InterviewFeedback, InterviewResponse,
    OrgPositionCreate, OrgPositionUpdate, OrgPositionResponse,
    EmployeeCreate, EmployeeUpdate, EmployeeResponse, EmployeeBulkStatusUpdate,
    CommentCreate, CommentUpdate, CommentMarkViewed, CommentResponse,
    StatusChangeLogResponse,
)

__all__ = [
    "Base", "SubscriptionPlan", "Organization", "OrgModule", "OrganizationModule",
    "Role", "RolePermission", "User", "Department", "Designation",
    "OrganizationalPosition", "Employee", "JobPosition", "Candidate", "Application",
    "InterviewSchedule", "CandidateComment", "CommentView", "StatusChangeLog",
    "CandidateStatus", "ApplicationStatus", "InterviewStatus", "InterviewResult",
    "InterviewMode", "EmployeeStatus", "StatusEntityType", "OrgStatus",
    "LoginRequest", "TokenResponse", "UserResponse", "UserCreate", "UserUpdate",
    "CandidateCreate", "CandidateUpdate", "CandidateResponse", "CandidateStatusUpdate",
    "ApplicationCreate", "ApplicationUpdate", "ApplicationResponse", "ApplicationStatusUpdate",
    "InterviewCreate", "InterviewUpdate", "InterviewFeedback", "InterviewResponse",
    "OrgPositionCreate", "OrgPositionUpdate", "OrgPositionResponse",
    "EmployeeCreate", "EmployeeUpdate", "EmployeeResponse", "EmployeeBulkStatusUpdate",
    "CommentCreate", "CommentUpdate", "CommentMarkViewed", "CommentResponse",
    "StatusChangeLogResponse",
]

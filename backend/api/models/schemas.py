from datetime import date, datetime, timedelta, timezone
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from .database import (
    CandidateStatus, ApplicationStatus, InterviewStatus, InterviewResult,
    InterviewMode, EmployeeStatus, StatusEntityType
)
from ..constants import (
    CANDIDATE_SOURCES, INTERVIEW_SCHEDULE_GRACE_MINUTES,
    INTERVIEW_RATING_MIN, INTERVIEW_RATING_MAX,
    COMMENT_MAX_LENGTH, COMMENT_RATING_MIN, COMMENT_RATING_MAX,
)


# Fields only returned to users allowed to see audit information
AUDIT_FIELDS = {"created_by", "updated_by", "creator", "updater"}


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# Auth
class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    organization_id: Optional[int] = None
    role_id: Optional[int] = None
    is_super_admin: bool = False
    is_active: bool = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class UserBrief(BaseModel):
    """Acting user attached to audit fields and history rows"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None


# Organization users
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role_id: Optional[int] = None
    is_active: bool = True


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    role_id: Optional[int] = None
    is_active: Optional[bool] = None


# Status changes
class StatusUpdateRequest(BaseModel):
    reason: Optional[str] = None


class CandidateStatusUpdate(StatusUpdateRequest):
    status: CandidateStatus


class ApplicationStatusUpdate(StatusUpdateRequest):
    status: ApplicationStatus


class StatusChangeLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entity_type: StatusEntityType
    entity_id: int
    old_status: Optional[str] = None
    new_status: str
    changed_by: int
    reason: Optional[str] = None
    created_at: Optional[datetime] = None
    user: Optional[UserBrief] = None


# Candidates
class CandidateBase(BaseModel):
    last_name: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    total_experience: Optional[int] = Field(None, ge=0)
    current_company: Optional[str] = None
    current_salary: Optional[float] = Field(None, ge=0)
    expected_salary: Optional[float] = Field(None, ge=0)
    notice_period: Optional[int] = Field(None, ge=0)
    skills: Optional[str] = None
    source: Optional[str] = None

    @field_validator('source')
    @classmethod
    def validate_source(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in CANDIDATE_SOURCES:
            raise ValueError(f"Invalid source. Must be one of: {', '.join(CANDIDATE_SOURCES)}")
        return v


class CandidateCreate(CandidateBase):
    first_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class CandidateUpdate(CandidateBase):
    """Status is deliberately absent: use the status endpoint."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None


class CandidateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    first_name: str
    last_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    total_experience: Optional[int] = None
    current_company: Optional[str] = None
    current_salary: Optional[float] = None
    expected_salary: Optional[float] = None
    notice_period: Optional[int] = None
    skills: Optional[str] = None
    source: Optional[str] = None
    status: CandidateStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    creator: Optional[UserBrief] = None
    updater: Optional[UserBrief] = None


# Applications
class ApplicationCreate(BaseModel):
    candidate_id: int
    job_position_id: int
    applied_date: Optional[date] = None
    notes: Optional[str] = None


class ApplicationUpdate(BaseModel):
    applied_date: Optional[date] = None
    notes: Optional[str] = None
    # A status here is treated as a manual override
    status: Optional[ApplicationStatus] = None
    reason: Optional[str] = None


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    candidate_id: int
    job_position_id: int
    applied_date: Optional[date] = None
    status: ApplicationStatus
    notes: Optional[str] = None
    candidate_name: Optional[str] = None
    job_title: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    creator: Optional[UserBrief] = None
    updater: Optional[UserBrief] = None


class PipelineStage(BaseModel):
    status: ApplicationStatus
    count: int
    # Serialized ApplicationResponse rows, audit fields already filtered
    applications: List[dict] = []


# Interviews
class InterviewCreate(BaseModel):
    application_id: int
    round_name: str = Field(..., min_length=1, max_length=100)
    interview_date: datetime
    interview_mode: InterviewMode
    interviewer_id: Optional[int] = None
    location: Optional[str] = None
    meeting_link: Optional[str] = None

    @field_validator('interview_date')
    @classmethod
    def normalize_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(v)

    @model_validator(mode='after')
    def validate_logistics(self):
        if self.interview_mode == InterviewMode.in_person and not self.location:
            raise ValueError("Location is required for In-person interviews")
        if self.interview_mode in (InterviewMode.video, InterviewMode.phone) and not self.meeting_link:
            raise ValueError(f"Meeting link is required for {self.interview_mode.value} interviews")
        earliest = datetime.utcnow() - timedelta(minutes=INTERVIEW_SCHEDULE_GRACE_MINUTES)
        if self.interview_date < earliest:
            raise ValueError("Interview date cannot be in the past")
        return self


class InterviewUpdate(BaseModel):
    round_name: Optional[str] = Field(None, min_length=1, max_length=100)
    interview_date: Optional[datetime] = None
    interview_mode: Optional[InterviewMode] = None
    interviewer_id: Optional[int] = None
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    status: Optional[InterviewStatus] = None
    reason: Optional[str] = None

    @field_validator('interview_date')
    @classmethod
    def normalize_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(v)


class InterviewFeedback(BaseModel):
    feedback: str = Field(..., min_length=1)
    rating: Optional[int] = Field(None, ge=INTERVIEW_RATING_MIN, le=INTERVIEW_RATING_MAX)
    result: Optional[InterviewResult] = None


class InterviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    application_id: int
    round_name: str
    interview_date: datetime
    interview_mode: InterviewMode
    interviewer_id: Optional[int] = None
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    status: InterviewStatus
    result: Optional[InterviewResult] = None
    feedback: Optional[str] = None
    rating: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    creator: Optional[UserBrief] = None
    updater: Optional[UserBrief] = None


# Organizational positions
class OrgPositionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    department_id: int
    designation_id: int
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    reporting_position_id: Optional[int] = None
    head_count: int = Field(1, ge=1)
    is_active: bool = True


class OrgPositionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    department_id: Optional[int] = None
    designation_id: Optional[int] = None
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    reporting_position_id: Optional[int] = None
    head_count: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None


class OrgPositionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    title: str
    code: Optional[str] = None
    description: Optional[str] = None
    department_id: int
    designation_id: int
    reporting_position_id: Optional[int] = None
    head_count: int
    is_active: bool = True
    employee_count: int = 0
    subordinate_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    creator: Optional[UserBrief] = None
    updater: Optional[UserBrief] = None


# Employees
class EmployeeCreate(BaseModel):
    employee_code: str = Field(..., min_length=1, max_length=50)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    department_id: Optional[int] = None
    designation_id: Optional[int] = None
    organizational_position_id: Optional[int] = None
    date_of_joining: Optional[date] = None
    status: EmployeeStatus = EmployeeStatus.active


class EmployeeUpdate(BaseModel):
    employee_code: Optional[str] = Field(None, min_length=1, max_length=50)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    department_id: Optional[int] = None
    designation_id: Optional[int] = None
    organizational_position_id: Optional[int] = None
    date_of_joining: Optional[date] = None
    status: Optional[EmployeeStatus] = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    employee_code: str
    first_name: str
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    department_id: Optional[int] = None
    designation_id: Optional[int] = None
    organizational_position_id: Optional[int] = None
    date_of_joining: Optional[date] = None
    status: EmployeeStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    creator: Optional[UserBrief] = None
    updater: Optional[UserBrief] = None


class EmployeeBulkStatusUpdate(BaseModel):
    employee_ids: List[int] = Field(..., min_length=1)
    status: EmployeeStatus


# Candidate comments
class CommentCreate(BaseModel):
    comment: str = Field(..., max_length=COMMENT_MAX_LENGTH)
    section_key: Optional[str] = Field(None, max_length=100)
    rating: Optional[int] = Field(None, ge=COMMENT_RATING_MIN, le=COMMENT_RATING_MAX)
    parent_comment_id: Optional[int] = None

    @field_validator('comment')
    @classmethod
    def strip_comment(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment text is required")
        return v


class CommentUpdate(BaseModel):
    comment: Optional[str] = Field(None, max_length=COMMENT_MAX_LENGTH)
    rating: Optional[int] = Field(None, ge=COMMENT_RATING_MIN, le=COMMENT_RATING_MAX)

    @field_validator('comment')
    @classmethod
    def strip_comment(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Comment text cannot be empty")
        return v


class CommentMarkViewed(BaseModel):
    section_key: str = Field(..., min_length=1, max_length=100)


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    candidate_id: int
    parent_comment_id: Optional[int] = None
    section_key: str
    comment: str
    rating: Optional[int] = None
    author_id: int
    author: Optional[UserBrief] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    replies: List["CommentResponse"] = []

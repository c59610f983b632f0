from sqlalchemy import (
    Boolean, Column, Date, DateTime, Enum as SQLEnum, ForeignKey, Index,
    Integer, Numeric, String, Text, JSON, func, UniqueConstraint
)
from sqlalchemy.orm import DeclarativeBase, relationship
import enum


class Base(DeclarativeBase):
    pass


def _enum_values(enum_cls):
    # Persist the human-readable value ("In Process"), not the member name
    return [member.value for member in enum_cls]


class OrgStatus(str, enum.Enum):
    active = "active"
    suspended = "suspended"
    inactive = "inactive"


class CandidateStatus(str, enum.Enum):
    new = "New"
    in_process = "In Process"
    selected = "Selected"
    rejected = "Rejected"
    on_hold = "On Hold"


class ApplicationStatus(str, enum.Enum):
    applied = "Applied"
    shortlisted = "Shortlisted"
    interview_scheduled = "Interview Scheduled"
    selected = "Selected"
    rejected = "Rejected"


class InterviewStatus(str, enum.Enum):
    scheduled = "Scheduled"
    completed = "Completed"
    cancelled = "Cancelled"
    rescheduled = "Rescheduled"


class InterviewResult(str, enum.Enum):
    passed = "Pass"
    failed = "Fail"
    on_hold = "On Hold"


class InterviewMode(str, enum.Enum):
    in_person = "In-person"
    video = "Video"
    phone = "Phone"


class EmployeeStatus(str, enum.Enum):
    active = "Active"
    inactive = "Inactive"
    on_leave = "On Leave"
    terminated = "Terminated"
    resigned = "Resigned"


class StatusEntityType(str, enum.Enum):
    candidate = "Candidate"
    application = "Application"
    interview = "Interview"


# Application statuses that keep a candidate "In Process"
ACTIVE_APPLICATION_STATUSES = frozenset({
    ApplicationStatus.applied,
    ApplicationStatus.shortlisted,
    ApplicationStatus.interview_scheduled,
})

# Only a manual override moves an application out of these
TERMINAL_APPLICATION_STATUSES = frozenset({
    ApplicationStatus.selected,
    ApplicationStatus.rejected,
})


class SubscriptionPlan(Base):
    """Subscription plan gating modules and limits"""
    __tablename__ = "subscription_plans"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    code = Column(String(50), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    max_users = Column(Integer, nullable=True)
    max_employees = Column(Integer, nullable=True)
    features = Column(JSON, default=dict)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=func.now())

    organizations = relationship("Organization", back_populates="subscription_plan")


class Organization(Base):
    """Organization (tenant)"""
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, index=True)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    code = Column(String(50), unique=True, nullable=True)
    subscription_plan_id = Column(Integer, ForeignKey("subscription_plans.id"), nullable=True)
    subscription_expiry_date = Column(DateTime, nullable=True)
    max_users = Column(Integer, default=10)
    max_employees = Column(Integer, default=50)
    is_active = Column(Boolean, default=True)
    status = Column(SQLEnum(OrgStatus), default=OrgStatus.active)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    subscription_plan = relationship("SubscriptionPlan", back_populates="organizations")
    modules = relationship("OrganizationModule", back_populates="organization", cascade="all, delete-orphan")
    users = relationship("User", back_populates="organization")


class OrgModule(Base):
    """Platform module that can be enabled per organization"""
    __tablename__ = "org_modules"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_core = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=func.now())


class OrganizationModule(Base):
    """Module enablement per organization"""
    __tablename__ = "organization_modules"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    module_id = Column(Integer, ForeignKey("org_modules.id", ondelete="CASCADE"), nullable=False)
    is_enabled = Column(Boolean, default=True)
    enabled_at = Column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint('organization_id', 'module_id', name='uq_org_module'),
    )

    organization = relationship("Organization", back_populates="modules")
    module = relationship("OrgModule")


class Role(Base):
    """Role - organization roles, or platform roles when organization_id is NULL"""
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String(100), nullable=False)
    code = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    is_system = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint('organization_id', 'code', name='uq_role_org_code'),
    )

    permissions = relationship("RolePermission", back_populates="role", cascade="all, delete-orphan")


class RolePermission(Base):
    """Per-module permission flags for a role"""
    __tablename__ = "role_permissions"

    id = Column(Integer, primary_key=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    module_code = Column(String(50), nullable=False)
    can_read = Column(Boolean, default=False)
    can_write = Column(Boolean, default=False)
    can_update = Column(Boolean, default=False)
    can_delete = Column(Boolean, default=False)
    can_approve = Column(Boolean, default=False)
    can_export = Column(Boolean, default=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('role_id', 'module_code', name='uq_role_permission_module'),
    )

    role = relationship("Role", back_populates="permissions")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True, index=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="SET NULL"), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    is_super_admin = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    token_version = Column(Integer, default=0)
    failed_login_attempts = Column(Integer, default=0)
    locked_until = Column(DateTime, nullable=True)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="users")
    role = relationship("Role")


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    code = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=func.now())


class Designation(Base):
    __tablename__ = "designations"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    code = Column(String(50), nullable=True)
    level = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=func.now())


class OrganizationalPosition(Base):
    """Position slot in the org chart: department + designation with a headcount"""
    __tablename__ = "organizational_positions"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False, index=True)
    designation_id = Column(Integer, ForeignKey("designations.id"), nullable=False, index=True)
    reporting_position_id = Column(Integer, ForeignKey("organizational_positions.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    code = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    head_count = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, default=True)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('organization_id', 'code', name='uq_org_position_code'),
        UniqueConstraint(
            'organization_id', 'department_id', 'designation_id', 'title',
            name='uq_org_position_dept_desig_title'
        ),
    )

    department = relationship("Department")
    designation = relationship("Designation")
    reporting_position = relationship(
        "OrganizationalPosition", remote_side=[id], back_populates="subordinate_positions"
    )
    subordinate_positions = relationship("OrganizationalPosition", back_populates="reporting_position")
    employees = relationship("Employee", back_populates="organizational_position")


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_code = Column(String(50), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    designation_id = Column(Integer, ForeignKey("designations.id"), nullable=True, index=True)
    organizational_position_id = Column(
        Integer, ForeignKey("organizational_positions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    date_of_joining = Column(Date, nullable=True)
    status = Column(SQLEnum(EmployeeStatus, values_callable=_enum_values), default=EmployeeStatus.active)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('organization_id', 'employee_code', name='uq_employee_org_code'),
    )

    department = relationship("Department")
    designation = relationship("Designation")
    organizational_position = relationship("OrganizationalPosition", back_populates="employees")


class JobPosition(Base):
    """Job opening that candidates apply for"""
    __tablename__ = "job_positions"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    title = Column(String(255), nullable=False)
    code = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    vacancies = Column(Integer, default=1)
    status = Column(String(20), default="Open")
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=func.now())

    applications = relationship("Application", back_populates="job_position")


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    total_experience = Column(Integer, nullable=True)
    current_company = Column(String(255), nullable=True)
    current_salary = Column(Numeric(10, 2), nullable=True)
    expected_salary = Column(Numeric(10, 2), nullable=True)
    notice_period = Column(Integer, nullable=True)
    skills = Column(Text, nullable=True)
    source = Column(String(100), nullable=True)
    status = Column(
        SQLEnum(CandidateStatus, values_callable=_enum_values),
        nullable=False, default=CandidateStatus.new
    )
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('ix_candidates_org_status', 'organization_id', 'status'),
    )

    applications = relationship("Application", back_populates="candidate", cascade="all, delete-orphan")


class Application(Base):
    """A candidate's application to a job position"""
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False, index=True)
    job_position_id = Column(Integer, ForeignKey("job_positions.id", ondelete="CASCADE"), nullable=False, index=True)
    applied_date = Column(Date, nullable=True)
    status = Column(
        SQLEnum(ApplicationStatus, values_callable=_enum_values),
        nullable=False, default=ApplicationStatus.applied
    )
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('candidate_id', 'job_position_id', name='uq_application_candidate_job'),
        Index('ix_applications_org_status', 'organization_id', 'status'),
    )

    candidate = relationship("Candidate", back_populates="applications")
    job_position = relationship("JobPosition", back_populates="applications")
    interviews = relationship("InterviewSchedule", back_populates="application", cascade="all, delete-orphan")


class InterviewSchedule(Base):
    __tablename__ = "interview_schedules"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    application_id = Column(Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    round_name = Column(String(100), nullable=False)
    interview_date = Column(DateTime, nullable=False)
    interview_mode = Column(
        SQLEnum(InterviewMode, values_callable=_enum_values),
        nullable=False, default=InterviewMode.in_person
    )
    interviewer_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    location = Column(String(255), nullable=True)
    meeting_link = Column(String(500), nullable=True)
    status = Column(
        SQLEnum(InterviewStatus, values_callable=_enum_values),
        nullable=False, default=InterviewStatus.scheduled
    )
    result = Column(SQLEnum(InterviewResult, values_callable=_enum_values), nullable=True)
    feedback = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    application = relationship("Application", back_populates="interviews")
    interviewer = relationship("User")


class CandidateComment(Base):
    """Reviewer note on one section of a candidate profile; replies are one level deep"""
    __tablename__ = "candidate_comments"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False)
    parent_comment_id = Column(
        Integer, ForeignKey("candidate_comments.id", ondelete="CASCADE"), nullable=True, index=True
    )
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    section_key = Column(String(100), nullable=False)
    comment = Column(Text, nullable=False)
    rating = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('ix_candidate_comments_candidate_section', 'candidate_id', 'section_key'),
    )


class CommentView(Base):
    """When a user last read the comments of one candidate section"""
    __tablename__ = "comment_views"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    candidate_id = Column(Integer, ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False, index=True)
    section_key = Column(String(100), nullable=False)
    last_viewed_at = Column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'candidate_id', 'section_key', name='uq_comment_view_user_candidate_section'),
    )


class StatusChangeLog(Base):
    """Append-only record of every Candidate/Application/Interview status transition"""
    __tablename__ = "status_change_logs"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True, index=True)
    entity_type = Column(SQLEnum(StatusEntityType, values_callable=_enum_values), nullable=False)
    entity_id = Column(Integer, nullable=False)
    old_status = Column(String(50), nullable=True)
    new_status = Column(String(50), nullable=False)
    # No FK: the system user sentinel may not exist as a row
    changed_by = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        Index('ix_status_change_logs_entity', 'entity_type', 'entity_id'),
    )

"""
Application constants - centralized configuration values.
Replaces magic numbers and ad-hoc literals throughout the codebase.
"""

# Pagination defaults
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Session/Auth
JWT_ACCESS_TOKEN_EXPIRE_MINUTES = 30
MAX_FAILED_LOGIN_ATTEMPTS = 5
ACCOUNT_LOCK_MINUTES = 15

# Module codes (match OrgModule.code and RolePermission.module_code)
MODULE_DASHBOARD = "dashboard"
MODULE_EMPLOYEES = "employees"
MODULE_ATTENDANCE = "attendance"
MODULE_LEAVE = "leave"
MODULE_MASTER_DATA = "master_data"
MODULE_REPORTS = "reports"
MODULE_RECRUITMENT = "recruitment"
MODULE_PAYROLL = "payroll"
MODULE_USERS = "users"

ALL_MODULES = {
    MODULE_DASHBOARD: "Dashboard",
    MODULE_EMPLOYEES: "Employees",
    MODULE_ATTENDANCE: "Attendance",
    MODULE_LEAVE: "Leave Management",
    MODULE_MASTER_DATA: "Master Data",
    MODULE_REPORTS: "Reports",
    MODULE_RECRUITMENT: "Recruitment",
    MODULE_PAYROLL: "Payroll",
    MODULE_USERS: "User Management",
}

# Interview round detection
FINAL_ROUND_KEYWORDS = ("final", "hr")
FINAL_ROUND_PASS_THRESHOLD = 3  # 3+ passed rounds count as final

# Interviews may be scheduled up to this many minutes in the past (client clock skew)
INTERVIEW_SCHEDULE_GRACE_MINUTES = 5
INTERVIEW_RATING_MIN = 1
INTERVIEW_RATING_MAX = 10

# Candidate comments
COMMENT_MAX_LENGTH = 5000
COMMENT_RATING_MIN = 1
COMMENT_RATING_MAX = 5
RECENT_COMMENTS_DAYS = 7

# Default reasons written to the status change log
REASON_INTERVIEW_SCHEDULED = "Interview scheduled"
REASON_CANDIDATE_AUTO_UPDATE = "Auto-updated based on application statuses"
REASON_MANUAL_UPDATE = "Manually updated by user"
REASON_DEFAULT = "Status updated"

# Candidate sources
CANDIDATE_SOURCES = [
    "LinkedIn", "Naukri", "Indeed", "Referral", "Direct", "Career Page", "Other"
]

# Response messages
MSG_PERMISSION_DENIED = "You do not have permission to perform this action"
MSG_MODULE_DISABLED = "This module is not enabled for your organization"
MSG_GENERAL_ERROR = "An error occurred"
MSG_VALIDATION_ERROR = "Validation error"
MSG_ORG_NOT_FOUND = "Organization not found"
MSG_ORG_INACTIVE = "Organization is inactive"
MSG_ORG_SUSPENDED = "Organization subscription is suspended"
MSG_ORG_EXPIRED = "Organization subscription has expired"

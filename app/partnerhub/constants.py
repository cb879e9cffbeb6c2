"""
Central constants for the partner management service.
"""
from __future__ import annotations

# Admin roles
ROLE_COORDINATOR = "COORDINATOR"
ROLE_MANAGER = "MANAGER"
ROLE_SENIOR_MANAGER = "SENIOR_MANAGER"
ROLE_LEGAL = "LEGAL"
ROLE_GOVERNANCE = "GOVERNANCE"
ROLE_FULL = "FULL"

ADMIN_ROLES = (
    ROLE_COORDINATOR,
    ROLE_MANAGER,
    ROLE_SENIOR_MANAGER,
    ROLE_LEGAL,
    ROLE_GOVERNANCE,
    ROLE_FULL,
)

# Roles that never carry region assignments
GLOBAL_ROLES = frozenset({ROLE_FULL, ROLE_MANAGER})

# Partner / business / agent lifecycle
STATUS_DRAFT = "DRAFT"
STATUS_SUBMITTED = "SUBMITTED"
STATUS_APPROVED = "APPROVED"
STATUS_DENIED = "DENIED"
STATUS_EXPIRED = "EXPIRED"

ENTITY_STATUSES = (STATUS_DRAFT, STATUS_SUBMITTED, STATUS_APPROVED, STATUS_DENIED, STATUS_EXPIRED)

# Notification categories
CATEGORY_INFO = "INFO"
CATEGORY_SUCCESS = "SUCCESS"
CATEGORY_WARNING = "WARNING"
CATEGORY_ERROR = "ERROR"
NOTIFICATION_CATEGORIES = (CATEGORY_INFO, CATEGORY_SUCCESS, CATEGORY_WARNING, CATEGORY_ERROR)

RECIPIENT_ADMIN = "ADMIN"
RECIPIENT_PARTNER = "PARTNER"

# Threads (feedback, restock, training)
THREAD_OPEN = "OPEN"
THREAD_RESPONDED = "RESPONDED"
THREAD_CLOSED = "CLOSED"

AUTHOR_ADMIN = "ADMIN"
AUTHOR_PARTNER = "PARTNER"

RESTOCK_ITEMS = ("SIM Cards", "Y'ello Biz", "Y'ello Cameras")

# Denied submissions expire after this many days; reminders go out on the listed days.
REJECTION_EXPIRY_DAYS = 30
REJECTION_REMINDER_DAYS = (7, 14, 25)

# Admin authentication
OTP_TTL_MINUTES = 10
ADMIN_SESSION_HOURS = 8

# Partner authentication tokens
VERIFY_TOKEN_HOURS = 24
RESET_TOKEN_HOURS = 1
MIN_PASSWORD_LENGTH = 8

TOKEN_VERIFY_EMAIL = "VERIFY_EMAIL"
TOKEN_RESET_PASSWORD = "RESET_PASSWORD"

# Onboard request choices
BUSINESS_TYPES = (
    "Sole Proprietorship",
    "Partnership",
    "Limited Liability Company",
    "Other",
)

REGISTERED_NATURES = (
    "Distribution",
    "Financial Services",
    "Retail",
    "Telecommunications",
    "Wholesale",
    "Other",
)

MAX_FORM_IMAGES = 5

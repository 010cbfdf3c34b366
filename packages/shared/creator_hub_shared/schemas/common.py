import re
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class ProjectRole(str, Enum):
    OWNER = "owner"
    CONTRIBUTOR = "contributor"
    KNOWLEDGE_MANAGER = "knowledge_manager"
    READ_ONLY = "read_only"


class ShareStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class ProfileRole(str, Enum):
    INFLUENCER = "influencer"
    CUSTOMER = "customer"
    ADMIN = "admin"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    NONE = "none"


# Roles an invitation may grant. Ownership only comes from project creation.
INVITABLE_ROLES: frozenset[ProjectRole] = frozenset({
    ProjectRole.CONTRIBUTOR,
    ProjectRole.KNOWLEDGE_MANAGER,
    ProjectRole.READ_ONLY,
})

# Capability matrix. Owners pass every check regardless of these sets.
EDIT_COURSES_ROLES: frozenset[ProjectRole] = frozenset({
    ProjectRole.OWNER,
    ProjectRole.CONTRIBUTOR,
})

VIEW_COURSES_ROLES: frozenset[ProjectRole] = frozenset({
    ProjectRole.OWNER,
    ProjectRole.CONTRIBUTOR,
    ProjectRole.READ_ONLY,
    ProjectRole.KNOWLEDGE_MANAGER,
})

CONVERSATION_ROLES: frozenset[ProjectRole] = VIEW_COURSES_ROLES

MANAGE_SHARES_ROLES: frozenset[ProjectRole] = frozenset({
    ProjectRole.OWNER,
    ProjectRole.CONTRIBUTOR,
})

ROLE_LABELS: dict[ProjectRole, str] = {
    ProjectRole.OWNER: "Owner",
    ProjectRole.CONTRIBUTOR: "Contributor",
    ProjectRole.KNOWLEDGE_MANAGER: "Knowledge Manager",
    ProjectRole.READ_ONLY: "Read Only",
}

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email: Optional[str]) -> bool:
    """Loose syntactic check, same rule the invite form applies."""
    if not email:
        return False
    return _EMAIL_RE.match(email.strip()) is not None


class ErrorBody(BaseModel):
    code: str
    message: str
    status: int


class ErrorResponse(BaseModel):
    error: ErrorBody

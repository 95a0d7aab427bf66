"""
Role checks as pure functions of (profile, action).

``profile`` is a profiles row as a dict (``user_role`` plus the legacy
``is_admin`` flag). A missing profile is allowed nothing.
"""

OWNER = "owner"
MANAGER = "manager"
SPACE_MANAGER = "space_manager"
TEACHER = "teacher"
READ_ONLY = "read_only"

USER_ROLES = (OWNER, MANAGER, SPACE_MANAGER, TEACHER, READ_ONLY)

_STAFF = {OWNER, MANAGER, SPACE_MANAGER}

PERMISSIONS = {
    "view_bookings": set(USER_ROLES),
    "manage_bookings": _STAFF,
    "manage_halls": _STAFF,
    "record_payments": _STAFF,
    "mark_attendance": _STAFF | {TEACHER},
    "request_settlement_change": _STAFF | {TEACHER},
    "manage_fees": {OWNER, MANAGER},
    "view_finance": {OWNER, MANAGER},
    "view_reports": {OWNER, MANAGER},
    "manage_users": {OWNER, MANAGER},
    "review_settlements": {OWNER, MANAGER},
    "manage_expenses": {OWNER, MANAGER},
    "view_audit_logs": {OWNER},
}


def role_of(profile):
    if not profile:
        return None
    return profile.get("user_role")


def is_privileged(profile) -> bool:
    """owner, manager, or the legacy admin flag."""
    if not profile:
        return False
    return bool(profile.get("is_admin")) or role_of(profile) in {OWNER, MANAGER}


def can(profile, action: str) -> bool:
    if action not in PERMISSIONS:
        raise ValueError(f"unknown action: {action}")
    if not profile:
        return False
    if profile.get("is_admin"):
        return True
    return role_of(profile) in PERMISSIONS[action]


def is_valid_role(role) -> bool:
    return role in USER_ROLES

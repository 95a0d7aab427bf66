"""
Account creation on behalf of an owner or manager.

``create_user`` mirrors an HTTP handler: it returns ``(status, payload)``
with ``{"success": True, "user": ...}`` on success and
``{"error": ..., "details": ...}`` otherwise.
"""
import logging
import sqlite3

from Hallsmart.core import roles
from Hallsmart.data.repos import profiles_repo
from Hallsmart.data.repos.audit_repo import log_action
from Hallsmart.services.identity import IdentityError

logger = logging.getLogger(__name__)

LOCAL_EMAIL_DOMAIN = "local.app"


def _error(status, message, details=None):
    payload = {"error": message}
    if details:
        payload["details"] = details
    return status, payload


def _strip_bearer(header):
    if not header:
        return None
    token = header[len("Bearer "):] if header.startswith("Bearer ") else header
    return token.strip() or None


def create_user(identity, bearer_token, body):
    token = _strip_bearer(bearer_token)
    if not token:
        return _error(401, "Missing authorization header")

    try:
        caller = identity.get_user(token)
    except IdentityError as e:
        return _error(500, "Identity provider error", str(e))
    if not caller:
        return _error(401, "Invalid token")

    try:
        caller_profile = profiles_repo.get_profile_by_auth_id(caller.get("id"))
    except sqlite3.Error as e:
        logger.exception("Caller profile lookup failed")
        return _error(500, "Internal server error", str(e))
    if not roles.is_privileged(caller_profile):
        return _error(403, "Unauthorized: owner or manager access required")

    body = body or {}
    username = (body.get("username") or "").strip()
    password = body.get("password")
    user_role = body.get("user_role") or body.get("role")
    if not username or not password or not user_role:
        return _error(400, "Missing required fields: username, password, user_role")
    if not roles.is_valid_role(user_role):
        return _error(400, f"Invalid role. Must be one of: {', '.join(roles.USER_ROLES)}")
    try:
        taken = profiles_repo.get_profile_by_username(username) is not None
    except sqlite3.Error as e:
        logger.exception("Username lookup failed")
        return _error(500, "Internal server error", str(e))
    if taken:
        return _error(400, "Username already exists")

    email = body.get("email") or f"{username}@{LOCAL_EMAIL_DOMAIN}"
    full_name = body.get("full_name") or username

    try:
        account = identity.create_account(email, password, username)
    except IdentityError as e:
        return _error(400, "Failed to create user", str(e))

    try:
        profile_id = profiles_repo.insert_profile(
            username, user_role=user_role, full_name=full_name, email=email,
            phone=body.get("phone"), auth_user_id=account.get("id"),
        )
    except (sqlite3.Error, ValueError) as e:
        logger.error("Profile insert for %s failed, removing identity account: %s", username, e)
        try:
            identity.delete_account(account.get("id"))
        except IdentityError as cleanup_error:
            logger.error("Orphaned identity account %s: %s", account.get("id"), cleanup_error)
        return _error(500, "Failed to create profile", str(e))

    try:
        log_action(caller_profile["id"], "user_created",
                   {"profile_id": profile_id, "username": username, "user_role": user_role})
    except sqlite3.Error as e:
        # account and profile already exist
        logger.warning("Audit entry for new user %s not written: %s", username, e)
    return 200, {
        "success": True,
        "user": {
            "id": profile_id,
            "auth_user_id": account.get("id"),
            "email": email,
            "username": username,
            "user_role": user_role,
        },
    }

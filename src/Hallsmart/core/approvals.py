"""
Settlement change requests: staff propose edits or deletions of daily
settlements and a privileged reviewer approves or rejects them.

A request moves ``pending -> approved`` or ``pending -> rejected`` once.
Approving applies the stored payload to the settlement unless the caller
asks for a status-only approval.
"""
import logging
import sqlite3
from collections import defaultdict
from datetime import datetime

from Hallsmart.core import roles
from Hallsmart.core.errors import HallsmartError, InvalidTransition, PermissionDenied, ValidationError
from Hallsmart.core.results import QueryResult, RequestResult, StepResult
from Hallsmart.data.repos import settlements_repo
from Hallsmart.data.repos.audit_repo import log_action
from Hallsmart.data.repos.profiles_repo import get_display_name

logger = logging.getLogger(__name__)

REQUESTER_NAME_KEY = "requester_name"


def resolve_requester_name(profile_id) -> StepResult:
    try:
        name = get_display_name(profile_id)
    except sqlite3.Error as e:
        logger.warning("Display name lookup failed for profile %s: %s", profile_id, e)
        return StepResult(success=False, reason=str(e))
    if name is None:
        return StepResult(success=False, reason="profile has no display name")
    return StepResult(success=True, value=name)


def _submit(session, settlement_id, request_type, changes, reason) -> RequestResult:
    session.require("request_settlement_change")
    settlement = settlements_repo.get_settlement(settlement_id)
    if settlement is None:
        return RequestResult(success=False, error="Settlement not found")

    payload = dict(changes or {})
    name = resolve_requester_name(session.user_id)
    if name.success:
        payload[REQUESTER_NAME_KEY] = name.value

    request_id = settlements_repo.insert_change_request(
        settlement_id, settlement["settlement_date"], session.user_id, request_type, payload, reason)
    logger.info("Change request %s (%s) filed for settlement %s", request_id, request_type, settlement_id)
    return RequestResult(success=True, request=settlements_repo.get_change_request(request_id))


def request_edit(session, settlement_id, changes, reason=None) -> RequestResult:
    try:
        if not changes:
            raise ValidationError("no changes given")
        if REQUESTER_NAME_KEY in changes:
            raise ValidationError(f"{REQUESTER_NAME_KEY} is not a settlement field")
        settlements_repo.validate_settlement_fields(changes)
        return _submit(session, settlement_id, "edit", changes, reason)
    except (HallsmartError, ValueError) as e:
        return RequestResult(success=False, error=str(e))
    except sqlite3.Error as e:
        logger.exception("Edit request for settlement %s failed", settlement_id)
        return RequestResult(success=False, error=str(e))


def request_delete(session, settlement_id, reason=None) -> RequestResult:
    try:
        return _submit(session, settlement_id, "delete", None, reason)
    except HallsmartError as e:
        return RequestResult(success=False, error=str(e))
    except sqlite3.Error as e:
        logger.exception("Delete request for settlement %s failed", settlement_id)
        return RequestResult(success=False, error=str(e))


def list_requests(session, date=None, user_id=None, status="pending") -> QueryResult:
    """
    Requests newest first. ``date`` filters on the settlement's date,
    ``status="all"`` (or None) lists every state. Reviewers see everyone's
    requests; other staff only their own.
    """
    try:
        if user_id is not None and user_id == session.user_id:
            session.require("request_settlement_change")
        else:
            session.require("review_settlements")
        if status == "all":
            status = None
        if status is not None and status not in settlements_repo.REQUEST_STATUSES:
            raise ValidationError(f"invalid status filter: {status}")
        rows = settlements_repo.list_change_requests(settlement_date=date, requested_by=user_id, status=status)
        return QueryResult(success=True, data=rows)
    except HallsmartError as e:
        return QueryResult(success=False, data=[], error=str(e))
    except sqlite3.Error as e:
        logger.exception("Listing change requests failed")
        return QueryResult(success=False, data=[], error=str(e))


def _require_reviewer(session):
    session.require("review_settlements")
    if not roles.is_privileged(session.profile):
        raise PermissionDenied("only owners and managers review change requests")


def _apply(request) -> bool:
    settlement_id = request["settlement_id"]
    if settlement_id is None:
        return False
    if request["request_type"] == "delete":
        return settlements_repo.delete_settlement(settlement_id)
    changes = {k: v for k, v in request["payload"].items() if k != REQUESTER_NAME_KEY}
    if not changes:
        return False
    return settlements_repo.update_settlement(settlement_id, **changes)


def _review(session, request_id, new_status, apply_changes=False) -> RequestResult:
    try:
        _require_reviewer(session)
        request = settlements_repo.get_change_request(request_id)
        if request is None:
            return RequestResult(success=False, error="Request not found")
        if request["status"] != "pending":
            raise InvalidTransition(f"request {request_id} is already {request['status']}")

        reviewed_at = datetime.now().isoformat(sep=" ", timespec="seconds")
        if not settlements_repo.transition_change_request(request_id, new_status, session.user_id, reviewed_at):
            # another reviewer got there first
            raise InvalidTransition(f"request {request_id} is no longer pending")

        applied = False
        if apply_changes:
            applied = _apply(request)
            if not applied:
                logger.warning("Request %s approved but settlement %s was not changed",
                               request_id, request["settlement_id"])

        log_action(session.user_id, f"settlement_request_{new_status}", {
            "request_id": request_id,
            "settlement_id": request["settlement_id"],
            "request_type": request["request_type"],
            "applied": applied,
        })
        logger.info("Request %s %s by %s", request_id, new_status, session.user_id)
        return RequestResult(success=True, request=settlements_repo.get_change_request(request_id), applied=applied)
    except (HallsmartError, ValueError) as e:
        return RequestResult(success=False, error=str(e))
    except sqlite3.Error as e:
        logger.exception("Review of request %s failed", request_id)
        return RequestResult(success=False, error=str(e))


def approve_request(session, request_id, apply_changes=True) -> RequestResult:
    return _review(session, request_id, "approved", apply_changes=apply_changes)


def reject_request(session, request_id) -> RequestResult:
    return _review(session, request_id, "rejected")


def get_daily_summary(session, settlement_date) -> QueryResult:
    try:
        session.require("view_finance")
        rows = settlements_repo.list_settlements_by_date(settlement_date)
    except HallsmartError as e:
        return QueryResult(success=False, error=str(e))
    except sqlite3.Error as e:
        logger.exception("Daily summary for %s failed", settlement_date)
        return QueryResult(success=False, error=str(e))

    income = [r for r in rows if r["type"] == "income"]
    expenses = [r for r in rows if r["type"] == "expense"]
    total_income = sum(r["amount"] for r in income)
    total_expenses = sum(r["amount"] for r in expenses)
    return QueryResult(success=True, data={
        "date": settlement_date,
        "total_income": total_income,
        "total_expenses": total_expenses,
        "net_amount": total_income - total_expenses,
        "income_count": len(income),
        "expense_count": len(expenses),
    })


def get_teacher_contributions(session, date_from, date_to) -> QueryResult:
    """Income settlements sourced from teachers, largest total first."""
    try:
        session.require("view_finance")
        rows = settlements_repo.list_settlements(
            date_from=date_from, date_to=date_to, type="income", source_type="teacher")
    except HallsmartError as e:
        return QueryResult(success=False, data=[], error=str(e))
    except sqlite3.Error as e:
        logger.exception("Teacher contributions for %s..%s failed", date_from, date_to)
        return QueryResult(success=False, data=[], error=str(e))

    grouped = defaultdict(lambda: {"total": 0, "count": 0})
    for r in rows:
        key = r["source_id"] if r["source_id"] is not None else r["source_name"]
        entry = grouped[key]
        entry["teacher_id"] = r["source_id"]
        entry["teacher_name"] = entry.get("teacher_name") or r["source_name"]
        entry["total"] += r["amount"]
        entry["count"] += 1
    return QueryResult(success=True, data=sorted(grouped.values(), key=lambda e: e["total"], reverse=True))

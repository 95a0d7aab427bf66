import pytest

from Hallsmart.core import approvals
from Hallsmart.data.repos import audit_repo, settlements_repo


@pytest.fixture
def settlement(space_manager):
    return settlements_repo.create_settlement(
        space_manager.user_id, "2025-06-15", "income", 500, "teacher", "Sara Karimi", source_id=1)


def test_request_edit_is_pending_with_requester_name(manager, settlement):
    result = approvals.request_edit(manager, settlement, {"amount": 450}, reason="typo")

    assert result.success
    req = result.request
    assert req["status"] == "pending"
    assert req["request_type"] == "edit"
    assert req["settlement_date"] == "2025-06-15"
    assert req["payload"] == {"amount": 450, "requester_name": "Max Manager"}


def test_requester_name_falls_back_to_username(space_manager, settlement):
    result = approvals.request_delete(space_manager, settlement)
    assert result.request["payload"] == {"requester_name": "desk"}


def test_requester_name_lookup_failure_does_not_block(monkeypatch, manager, settlement):
    import sqlite3

    def boom(_profile_id):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(approvals, "get_display_name", boom)

    result = approvals.request_edit(manager, settlement, {"notes": "fixed"})

    assert result.success
    assert result.request["payload"] == {"notes": "fixed"}


def test_request_edit_rejects_unknown_fields(owner, manager, settlement):
    result = approvals.request_edit(manager, settlement, {"colour": "red"})
    assert not result.success
    assert approvals.list_requests(owner).data == []


@pytest.mark.parametrize("amount", ["abc", "450", None, True, -1])
def test_request_edit_rejects_bad_amount(owner, manager, settlement, amount):
    result = approvals.request_edit(manager, settlement, {"amount": amount})

    assert not result.success
    assert "amount" in result.error
    assert approvals.list_requests(owner, status="all").data == []


def test_request_on_missing_settlement(manager):
    result = approvals.request_delete(manager, 404)
    assert not result.success
    assert result.error == "Settlement not found"


def test_read_only_cannot_request(readonly, settlement):
    assert not approvals.request_delete(readonly, settlement).success


def test_approve_edit_applies_payload(owner, manager, settlement):
    req = approvals.request_edit(manager, settlement, {"amount": 450, "notes": "corrected"}).request

    result = approvals.approve_request(owner, req["id"])

    assert result.success
    assert result.applied
    assert result.request["status"] == "approved"
    assert result.request["reviewed_by"] == owner.user_id
    assert result.request["reviewed_at"]
    row = settlements_repo.get_settlement(settlement)
    assert row["amount"] == 450
    assert row["notes"] == "corrected"


def test_approve_without_applying(owner, manager, settlement):
    req = approvals.request_edit(manager, settlement, {"amount": 450}).request

    result = approvals.approve_request(owner, req["id"], apply_changes=False)

    assert result.success
    assert not result.applied
    assert settlements_repo.get_settlement(settlement)["amount"] == 500


def test_approve_delete_removes_settlement_keeps_request(owner, manager, settlement):
    req = approvals.request_delete(manager, settlement, reason="duplicate").request

    result = approvals.approve_request(owner, req["id"])

    assert result.applied
    assert settlements_repo.get_settlement(settlement) is None
    kept = settlements_repo.get_change_request(req["id"])
    assert kept["status"] == "approved"
    assert kept["settlement_id"] is None
    listed = approvals.list_requests(owner, date="2025-06-15", status="all")
    assert [r["id"] for r in listed.data] == [req["id"]]


def test_reject_leaves_settlement(owner, manager, settlement):
    req = approvals.request_edit(manager, settlement, {"amount": 1}).request

    result = approvals.reject_request(owner, req["id"])

    assert result.success
    assert result.request["status"] == "rejected"
    assert settlements_repo.get_settlement(settlement)["amount"] == 500


@pytest.mark.parametrize("first,second", [
    ("approve", "reject"),
    ("reject", "approve"),
    ("approve", "approve"),
    ("reject", "reject"),
])
def test_terminal_states_never_change(owner, manager, settlement, first, second):
    actions = {"approve": approvals.approve_request, "reject": approvals.reject_request}
    req = approvals.request_edit(manager, settlement, {"amount": 300}).request
    assert actions[first](owner, req["id"]).success

    result = actions[second](owner, req["id"])

    assert not result.success
    expected = "approved" if first == "approve" else "rejected"
    assert settlements_repo.get_change_request(req["id"])["status"] == expected


def test_only_privileged_review(space_manager, teacher_user, manager, settlement):
    req = approvals.request_edit(manager, settlement, {"amount": 300}).request

    for session in (space_manager, teacher_user):
        assert not approvals.approve_request(session, req["id"]).success
        assert not approvals.reject_request(session, req["id"]).success
    assert settlements_repo.get_change_request(req["id"])["status"] == "pending"


def test_review_missing_request(owner):
    result = approvals.approve_request(owner, 999)
    assert not result.success
    assert result.error == "Request not found"


def test_review_is_audited(owner, manager, settlement):
    req = approvals.request_edit(manager, settlement, {"amount": 300}).request
    approvals.approve_request(owner, req["id"])

    logs = audit_repo.fetch_audit_logs(action="settlement_request_approved")
    assert len(logs) == 1


def _ids(result):
    assert result.success, result.error
    return [r["id"] for r in result.data]


def test_list_requests_filters(owner, manager, space_manager, settlement):
    other = settlements_repo.create_settlement(
        manager.user_id, "2025-06-16", "expense", 80, "supplier", "Paper Co")
    r1 = approvals.request_edit(manager, settlement, {"amount": 1}).request
    r2 = approvals.request_delete(space_manager, other).request
    r3 = approvals.request_edit(space_manager, settlement, {"notes": "x"}).request
    approvals.reject_request(owner, r3["id"])

    assert _ids(approvals.list_requests(owner)) == [r2["id"], r1["id"]]
    assert _ids(approvals.list_requests(owner, date="2025-06-15")) == [r1["id"]]
    assert _ids(approvals.list_requests(owner, user_id=space_manager.user_id, status="all")) == [r3["id"], r2["id"]]
    assert _ids(approvals.list_requests(manager, status="rejected")) == [r3["id"]]
    assert approvals.list_requests(owner).data[0]["requester_name"] == "desk"


def test_staff_list_only_their_own_requests(manager, space_manager, settlement):
    mine = approvals.request_delete(space_manager, settlement).request
    approvals.request_edit(manager, settlement, {"amount": 1})

    everyone = approvals.list_requests(space_manager)
    assert not everyone.success
    assert everyone.data == []
    assert "review_settlements" in everyone.error
    assert not approvals.list_requests(space_manager, user_id=manager.user_id).success

    assert _ids(approvals.list_requests(space_manager, user_id=space_manager.user_id)) == [mine["id"]]


def test_read_only_cannot_list_requests(readonly):
    assert not approvals.list_requests(readonly).success
    assert not approvals.list_requests(readonly, user_id=readonly.user_id).success


def test_list_requests_rejects_unknown_status(owner):
    result = approvals.list_requests(owner, status="archived")
    assert not result.success
    assert "archived" in result.error


def test_daily_summary(owner, space_manager):
    settlements_repo.create_settlement(space_manager.user_id, "2025-06-15", "income", 500, "teacher", "A")
    settlements_repo.create_settlement(space_manager.user_id, "2025-06-15", "income", 250, "other", "B")
    settlements_repo.create_settlement(space_manager.user_id, "2025-06-15", "expense", 120, "supplier", "C")
    settlements_repo.create_settlement(space_manager.user_id, "2025-06-16", "income", 999, "teacher", "A")

    result = approvals.get_daily_summary(owner, "2025-06-15")

    assert result.success
    summary = result.data
    assert summary["total_income"] == 750
    assert summary["total_expenses"] == 120
    assert summary["net_amount"] == 630
    assert summary["income_count"] == 2
    assert summary["expense_count"] == 1


def test_finance_reads_need_permission(space_manager, readonly):
    for session in (space_manager, readonly):
        assert not approvals.get_daily_summary(session, "2025-06-15").success
        contributions = approvals.get_teacher_contributions(session, "2025-06-01", "2025-06-30")
        assert not contributions.success
        assert contributions.data == []


def test_finance_read_database_error_is_reported(monkeypatch, owner):
    import sqlite3

    def locked(*args, **kwargs):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(settlements_repo, "list_settlements_by_date", locked)
    monkeypatch.setattr(settlements_repo, "list_change_requests", locked)

    summary = approvals.get_daily_summary(owner, "2025-06-15")
    assert not summary.success
    assert summary.error == "database is locked"
    assert not approvals.list_requests(owner).success


def test_teacher_contributions(owner, space_manager):
    uid = space_manager.user_id
    settlements_repo.create_settlement(uid, "2025-06-01", "income", 100, "teacher", "A", source_id=1)
    settlements_repo.create_settlement(uid, "2025-06-02", "income", 300, "teacher", "B", source_id=2)
    settlements_repo.create_settlement(uid, "2025-06-03", "income", 150, "teacher", "A", source_id=1)
    settlements_repo.create_settlement(uid, "2025-06-03", "expense", 50, "teacher", "A", source_id=1)
    settlements_repo.create_settlement(uid, "2025-07-01", "income", 900, "teacher", "A", source_id=1)

    result = approvals.get_teacher_contributions(owner, "2025-06-01", "2025-06-30")

    assert result.success
    assert [(r["teacher_id"], r["total"], r["count"]) for r in result.data] == [(2, 300, 1), (1, 250, 2)]

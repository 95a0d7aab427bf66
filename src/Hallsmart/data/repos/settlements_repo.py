import json
import logging
import numbers
from Hallsmart.data.db import get_connection

logger = logging.getLogger(__name__)

SETTLEMENT_TYPES = {"income", "expense"}
SETTLEMENT_FIELDS = {
	"settlement_date", "type", "amount", "source_type", "source_id",
	"source_name", "category", "notes",
}
REQUEST_TYPES = {"edit", "delete"}
REQUEST_STATUSES = {"pending", "approved", "rejected"}


def validate_settlement_fields(fields):
	unknown = set(fields) - SETTLEMENT_FIELDS
	if unknown:
		raise ValueError(f"unknown settlement fields: {', '.join(sorted(unknown))}")
	if "type" in fields and fields["type"] not in SETTLEMENT_TYPES:
		raise ValueError("invalid settlement type")
	if "amount" in fields:
		amount = fields["amount"]
		if not isinstance(amount, numbers.Real) or isinstance(amount, bool) or amount < 0:
			raise ValueError("amount must be a non-negative number")


# --- daily settlements ---

def create_settlement(created_by, settlement_date, type, amount, source_type, source_name,
					  source_id=None, category=None, notes=None):
	validate_settlement_fields({"type": type, "amount": amount})
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			INSERT INTO daily_settlements
				(created_by, settlement_date, type, amount, source_type, source_id, source_name, category, notes)
			VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
			""",
			(created_by, settlement_date, type, amount, source_type, source_id, source_name, category, notes),
		)
		conn.commit()
		return c.lastrowid


def get_settlement(settlement_id):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT * FROM daily_settlements WHERE id = ?", (settlement_id,))
		row = c.fetchone()
		return dict(row) if row else None


def list_settlements(date_from=None, date_to=None, created_by=None, type=None, source_type=None):
	query = "SELECT * FROM daily_settlements"
	conditions = []
	params = []
	if date_from:
		conditions.append("settlement_date >= ?")
		params.append(date_from)
	if date_to:
		conditions.append("settlement_date <= ?")
		params.append(date_to)
	if created_by:
		conditions.append("created_by = ?")
		params.append(created_by)
	if type:
		conditions.append("type = ?")
		params.append(type)
	if source_type:
		conditions.append("source_type = ?")
		params.append(source_type)
	if conditions:
		query += " WHERE " + " AND ".join(conditions)
	query += " ORDER BY settlement_date DESC, created_at DESC, id DESC"
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(query, params)
		return [dict(r) for r in c.fetchall()]


def list_settlements_by_date(settlement_date):
	return list_settlements(date_from=settlement_date, date_to=settlement_date)


def list_settlements_by_creator(creator_id, date_from=None, date_to=None):
	return list_settlements(date_from=date_from, date_to=date_to, created_by=creator_id)


def update_settlement(settlement_id, **fields):
	validate_settlement_fields(fields)
	if not fields:
		return False
	assignments = ", ".join(f"{k}=?" for k in fields)
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			f"UPDATE daily_settlements SET {assignments}, updated_at=datetime('now','localtime') WHERE id=?",
			(*fields.values(), settlement_id),
		)
		conn.commit()
		return c.rowcount > 0


def delete_settlement(settlement_id):
	"""Returns True only when a row was actually removed."""
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("DELETE FROM daily_settlements WHERE id = ?", (settlement_id,))
		conn.commit()
		return c.rowcount > 0


# --- change requests ---

def _row_to_request(row):
	if row is None:
		return None
	req = dict(row)
	req["payload"] = json.loads(req.get("payload") or "{}")
	return req


def insert_change_request(settlement_id, settlement_date, requested_by, request_type, payload, reason=None):
	if request_type not in REQUEST_TYPES:
		raise ValueError("invalid request_type")
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			INSERT INTO settlement_change_requests
				(settlement_id, settlement_date, requested_by, request_type, payload, reason, status)
			VALUES (?, ?, ?, ?, ?, ?, 'pending')
			""",
			(settlement_id, settlement_date, requested_by, request_type,
			 json.dumps(payload or {}, ensure_ascii=False), reason),
		)
		conn.commit()
		return c.lastrowid


def get_change_request(request_id):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT * FROM settlement_change_requests WHERE id = ?", (request_id,))
		return _row_to_request(c.fetchone())


def list_change_requests(settlement_date=None, requested_by=None, status=None):
	"""
	Requests joined to their settlement's date (a snapshot is kept on the
	request for settlements that were deleted), newest first.
	"""
	query = """
		SELECT r.*,
			   COALESCE(s.settlement_date, r.settlement_date) AS effective_date,
			   COALESCE(p.full_name, p.username) AS requester_name
		FROM settlement_change_requests r
		LEFT JOIN daily_settlements s ON s.id = r.settlement_id
		LEFT JOIN profiles p ON p.id = r.requested_by
	"""
	conditions = []
	params = []
	if settlement_date:
		conditions.append("COALESCE(s.settlement_date, r.settlement_date) = ?")
		params.append(settlement_date)
	if requested_by:
		conditions.append("r.requested_by = ?")
		params.append(requested_by)
	if status:
		conditions.append("r.status = ?")
		params.append(status)
	if conditions:
		query += " WHERE " + " AND ".join(conditions)
	query += " ORDER BY r.created_at DESC, r.id DESC"
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(query, params)
		return [_row_to_request(r) for r in c.fetchall()]


def transition_change_request(request_id, new_status, reviewed_by, reviewed_at):
	"""
	pending -> approved/rejected. The WHERE clause keeps terminal rows frozen;
	returns False when the request was not pending.
	"""
	if new_status not in REQUEST_STATUSES - {"pending"}:
		raise ValueError("invalid target status")
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			UPDATE settlement_change_requests
			SET status = ?, reviewed_by = ?, reviewed_at = ?
			WHERE id = ? AND status = 'pending'
			""",
			(new_status, reviewed_by, reviewed_at, request_id),
		)
		conn.commit()
		return c.rowcount > 0

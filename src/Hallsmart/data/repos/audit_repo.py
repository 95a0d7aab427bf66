import json
from Hallsmart.data.db import get_connection


def log_action(actor_user_id, action, details=None):
	with get_connection() as conn:
		conn.execute(
			"INSERT INTO audit_logs (actor_user_id, action, details) VALUES (?, ?, ?)",
			(actor_user_id, action, json.dumps(details or {}, ensure_ascii=False, default=str)),
		)
		conn.commit()


def fetch_audit_logs(limit=100, action=None):
	query = "SELECT id, actor_user_id, action, details, created_at FROM audit_logs"
	params = []
	if action:
		query += " WHERE action = ?"
		params.append(action)
	query += " ORDER BY id DESC LIMIT ?"
	params.append(limit)
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(query, params)
		rows = []
		for r in c.fetchall():
			row = dict(r)
			row["details"] = json.loads(row["details"] or "{}")
			rows.append(row)
		return rows

import logging
from Hallsmart.data.db import get_connection

logger = logging.getLogger(__name__)

ATTENDANCE_STATUSES = {"present", "absent", "late", "excused"}


def insert_attendance(registration_id, attendance_date, status="present", notes=None, created_by=None):
	if status not in ATTENDANCE_STATUSES:
		raise ValueError("invalid attendance status")
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			INSERT INTO attendance_records (student_registration_id, attendance_date, status, notes, created_by)
			VALUES (?, ?, ?, ?, ?)
			""",
			(registration_id, attendance_date, status, notes, created_by),
		)
		conn.commit()
		return c.lastrowid


def update_attendance(attendance_id, status, notes=None):
	if status not in ATTENDANCE_STATUSES:
		raise ValueError("invalid attendance status")
	with get_connection() as conn:
		conn.execute(
			"UPDATE attendance_records SET status = ?, notes = COALESCE(?, notes) WHERE id = ?",
			(status, notes, attendance_id),
		)
		conn.commit()


def mark_present_for_date(registration_id, attendance_date, created_by=None):
	"""
	Update an existing record for (registration, date) to present, or create one.
	Returns the record id.
	"""
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			SELECT id FROM attendance_records
			WHERE student_registration_id = ? AND attendance_date = ?
			""",
			(registration_id, attendance_date),
		)
		row = c.fetchone()
		if row:
			c.execute("UPDATE attendance_records SET status = 'present' WHERE id = ?", (row[0],))
			conn.commit()
			return row[0]
		c.execute(
			"""
			INSERT INTO attendance_records (student_registration_id, attendance_date, status, created_by)
			VALUES (?, ?, 'present', ?)
			""",
			(registration_id, attendance_date, created_by),
		)
		conn.commit()
		return c.lastrowid


def fetch_attendance_by_registration(registration_id):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			SELECT id, attendance_date, status, notes
			FROM attendance_records
			WHERE student_registration_id = ?
			ORDER BY attendance_date DESC
			""",
			(registration_id,),
		)
		return [dict(r) for r in c.fetchall()]


def count_attendance(registration_id, status=None):
	query = "SELECT COUNT(*) FROM attendance_records WHERE student_registration_id = ?"
	params = [registration_id]
	if status:
		query += " AND status = ?"
		params.append(status)
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(query, params)
		return c.fetchone()[0]


def delete_attendance_in_range(registration_ids, date_from, date_to):
	registration_ids = list(registration_ids)
	if not registration_ids:
		return 0
	placeholders = ",".join("?" * len(registration_ids))
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			f"""
			DELETE FROM attendance_records
			WHERE student_registration_id IN ({placeholders})
			  AND attendance_date >= ? AND attendance_date <= ?
			""",
			(*registration_ids, date_from, date_to),
		)
		conn.commit()
		return c.rowcount  # number of removed records

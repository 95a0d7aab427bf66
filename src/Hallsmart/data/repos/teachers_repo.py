import logging
from Hallsmart.data.db import get_connection

logger = logging.getLogger(__name__)


def fetch_teachers():
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT id, name, teacher_code, default_class_fee FROM teachers ORDER BY name COLLATE NOCASE")
		return [dict(r) for r in c.fetchall()]


def insert_teacher(name, mobile_phone=None, teacher_code=None, default_class_fee=None):
	if default_class_fee is not None and default_class_fee < 0:
		raise ValueError("default_class_fee must be non-negative")
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			INSERT INTO teachers (name, mobile_phone, teacher_code, default_class_fee)
			VALUES (?, ?, ?, ?)
			""",
			(name, mobile_phone, teacher_code, default_class_fee),
		)
		conn.commit()
		return c.lastrowid


def delete_teacher_by_id(teacher_id):
	with get_connection() as conn:
		conn.execute("DELETE FROM teachers WHERE id=?", (teacher_id,))
		conn.commit()


def is_teacher_booked(teacher_id):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT COUNT(*) FROM bookings WHERE teacher_id = ? AND status = 'active'", (teacher_id,))
		return c.fetchone()[0] > 0


def update_teacher_by_id(teacher_id, name, mobile_phone=None, teacher_code=None):
	with get_connection() as conn:
		conn.execute(
			"""
			UPDATE teachers
			SET name=?, mobile_phone=?, teacher_code=?, updated_at=datetime('now','localtime')
			WHERE id=?
			""",
			(name, mobile_phone, teacher_code, teacher_id),
		)
		conn.commit()


def set_teacher_default_fee(teacher_id, fee):
	if fee < 0:
		raise ValueError("fee must be non-negative")
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			UPDATE teachers
			SET default_class_fee=?, updated_at=datetime('now','localtime')
			WHERE id=?
			""",
			(fee, teacher_id),
		)
		conn.commit()
		return c.rowcount > 0


def get_teacher_by_id(teacher_id):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			SELECT id, name, mobile_phone, teacher_code, default_class_fee
			FROM teachers
			WHERE id=?
			""",
			(teacher_id,),
		)
		row = c.fetchone()
		return dict(row) if row else None


def get_teacher_id_by_code(teacher_code):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT id FROM teachers WHERE teacher_code = ?", (teacher_code,))
		row = c.fetchone()
		return row[0] if row else None

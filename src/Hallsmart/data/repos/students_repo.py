import logging
from datetime import date
from Hallsmart.data.db import get_connection

logger = logging.getLogger(__name__)


def generate_serial_number(year=None):
	"""Next serial of the form S<year><4-digit sequence>, e.g. S20250007."""
	year = year or date.today().year
	prefix = f"S{year}"
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"SELECT serial_number FROM students WHERE serial_number LIKE ? ORDER BY serial_number DESC LIMIT 1",
			(prefix + "%",),
		)
		row = c.fetchone()
	seq = 1
	if row:
		try:
			seq = int(row[0][len(prefix):]) + 1
		except ValueError:
			logger.warning("Unexpected serial format %r; restarting sequence", row[0])
	return f"{prefix}{seq:04d}"


def insert_student(name, mobile_phone, parent_phone=None, city=None, serial_number=None):
	if not name or not mobile_phone:
		raise ValueError("name and mobile_phone are required")
	serial_number = serial_number or generate_serial_number()
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			INSERT INTO students (serial_number, name, mobile_phone, parent_phone, city)
			VALUES (?, ?, ?, ?, ?)
			""",
			(serial_number, name, mobile_phone, parent_phone, city),
		)
		conn.commit()
		return c.lastrowid


def get_student_by_id(student_id):
	with get_connection() as conn:
		c = conn.execute(
			"SELECT id, serial_number, name, mobile_phone, parent_phone, city FROM students WHERE id=?",
			(student_id,),
		)
		row = c.fetchone()
		return dict(row) if row else None


def update_student_by_id(student_id, name, mobile_phone, parent_phone=None, city=None):
	with get_connection() as conn:
		conn.execute(
			"""
			UPDATE students
			SET name=?, mobile_phone=?, parent_phone=?, city=?, updated_at=datetime('now','localtime')
			WHERE id=?
			""",
			(name, mobile_phone, parent_phone, city, student_id),
		)
		conn.commit()


def delete_student_by_id(student_id):
	with get_connection() as conn:
		conn.execute("DELETE FROM students WHERE id=?", (student_id,))
		conn.commit()


def fetch_students():
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			SELECT id, serial_number, name, mobile_phone, city
			FROM students
			ORDER BY name COLLATE NOCASE
			"""
		)
		return [dict(r) for r in c.fetchall()]


def search_students(term):
	"""Exact serial match first, then name / phone substring matches."""
	like = f"%{term.strip()}%"
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			SELECT id, serial_number, name, mobile_phone, city
			FROM students
			WHERE serial_number = ? OR name LIKE ? OR mobile_phone LIKE ? OR parent_phone LIKE ?
			ORDER BY CASE WHEN serial_number = ? THEN 0 ELSE 1 END, name COLLATE NOCASE
			""",
			(term.strip(), like, like, like, term.strip()),
		)
		return [dict(r) for r in c.fetchall()]

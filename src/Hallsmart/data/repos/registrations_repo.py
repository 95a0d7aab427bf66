import logging
from Hallsmart.data.db import get_connection

logger = logging.getLogger(__name__)

PAYMENT_STATUSES = {"pending", "partial", "paid"}


def create_registration(student_id, booking_id, registration_date, total_fees=None,
						notes=None, created_by=None):
	"""
	Enrol a student into a booking for the month of registration_date.
	Without total_fees the booking's current class_fees is used.
	"""
	with get_connection() as conn:
		c = conn.cursor()
		if total_fees is None:
			c.execute("SELECT class_fees FROM bookings WHERE id = ?", (booking_id,))
			row = c.fetchone()
			if not row:
				raise ValueError(f"booking {booking_id} does not exist")
			total_fees = row[0] or 0
		if total_fees < 0:
			raise ValueError("total_fees must be non-negative")
		c.execute(
			"""
			INSERT INTO student_registrations
				(student_id, booking_id, registration_date, total_fees, paid_amount, payment_status, notes, created_by)
			VALUES (?, ?, ?, ?, 0, 'pending', ?, ?)
			""",
			(student_id, booking_id, registration_date, total_fees, notes, created_by),
		)
		conn.commit()
		return c.lastrowid


def insert_registrations(rows):
	"""
	rows = list of dicts with student_id, booking_id, registration_date,
	total_fees, paid_amount, payment_status (and optional created_by).
	"""
	if not rows:
		return 0
	with get_connection() as conn:
		c = conn.cursor()
		c.executemany(
			"""
			INSERT INTO student_registrations
				(student_id, booking_id, registration_date, total_fees, paid_amount, payment_status, created_by)
			VALUES (:student_id, :booking_id, :registration_date, :total_fees, :paid_amount, :payment_status, :created_by)
			""",
			[{"created_by": None, **r} for r in rows],
		)
		conn.commit()
		return len(rows)


def get_registration_by_id(registration_id):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT * FROM student_registrations WHERE id = ?", (registration_id,))
		row = c.fetchone()
		return dict(row) if row else None


def fetch_registrations_by_booking(booking_id):
	"""All registrations of a booking across every month, newest first."""
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			SELECT id, student_id, booking_id, registration_date, total_fees, paid_amount, payment_status
			FROM student_registrations
			WHERE booking_id = ?
			ORDER BY registration_date DESC, id DESC
			""",
			(booking_id,),
		)
		return [dict(r) for r in c.fetchall()]


def fetch_registrations_in_range(booking_ids, date_from, date_to):
	booking_ids = list(booking_ids)
	if not booking_ids:
		return []
	placeholders = ",".join("?" * len(booking_ids))
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			f"""
			SELECT id, student_id, booking_id, registration_date, total_fees, paid_amount, payment_status
			FROM student_registrations
			WHERE booking_id IN ({placeholders})
			  AND registration_date >= ? AND registration_date <= ?
			ORDER BY id
			""",
			(*booking_ids, date_from, date_to),
		)
		return [dict(r) for r in c.fetchall()]


def fetch_registrations_by_month(date_from, date_to):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			SELECT r.*, s.name AS student_name, s.serial_number,
				   b.class_code, t.name AS teacher_name, h.name AS hall_name
			FROM student_registrations r
			JOIN students s ON s.id = r.student_id
			JOIN bookings b ON b.id = r.booking_id
			JOIN teachers t ON t.id = b.teacher_id
			JOIN halls h ON h.id = b.hall_id
			WHERE r.registration_date >= ? AND r.registration_date <= ?
			ORDER BY r.registration_date DESC, r.id DESC
			""",
			(date_from, date_to),
		)
		return [dict(r) for r in c.fetchall()]


def fetch_registrations_by_student(student_id):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			SELECT r.*, b.class_code
			FROM student_registrations r
			JOIN bookings b ON b.id = r.booking_id
			WHERE r.student_id = ?
			ORDER BY r.registration_date DESC
			""",
			(student_id,),
		)
		return [dict(r) for r in c.fetchall()]


def count_registrations_by_booking(booking_ids):
	booking_ids = list(booking_ids)
	counts = {bid: 0 for bid in booking_ids}
	if not booking_ids:
		return counts
	placeholders = ",".join("?" * len(booking_ids))
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			f"""
			SELECT booking_id, COUNT(*) FROM student_registrations
			WHERE booking_id IN ({placeholders})
			GROUP BY booking_id
			""",
			booking_ids,
		)
		for booking_id, n in c.fetchall():
			counts[booking_id] = n
	return counts


def update_registration_fees(registration_id, total_fees, payment_status):
	if payment_status not in PAYMENT_STATUSES:
		raise ValueError("invalid payment_status")
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			UPDATE student_registrations
			SET total_fees=?, payment_status=?, updated_at=datetime('now','localtime')
			WHERE id=?
			""",
			(total_fees, payment_status, registration_id),
		)
		conn.commit()
		return c.rowcount > 0


def update_registration_payment(registration_id, paid_amount, payment_status):
	if payment_status not in PAYMENT_STATUSES:
		raise ValueError("invalid payment_status")
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			UPDATE student_registrations
			SET paid_amount=?, payment_status=?, updated_at=datetime('now','localtime')
			WHERE id=?
			""",
			(paid_amount, payment_status, registration_id),
		)
		conn.commit()
		return c.rowcount > 0


def delete_registration(registration_id):
	with get_connection() as conn:
		conn.execute("DELETE FROM student_registrations WHERE id = ?", (registration_id,))
		conn.commit()

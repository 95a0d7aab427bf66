import logging
from Hallsmart.data.db import get_connection

logger = logging.getLogger(__name__)

PAYMENT_METHODS = {"cash", "card", "transfer", "other"}


def insert_payment(registration_id, amount, payment_date, payment_method="cash",
				   reference_number=None, notes=None, created_by=None):
	if payment_method not in PAYMENT_METHODS:
		raise ValueError("invalid payment_method")
	if amount < 0:
		raise ValueError("amount must be non-negative")
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			INSERT INTO payment_records
				(student_registration_id, amount, payment_date, payment_method, reference_number, notes, created_by)
			VALUES (?, ?, ?, ?, ?, ?, ?)
			""",
			(registration_id, amount, payment_date, payment_method, reference_number, notes, created_by),
		)
		conn.commit()
		return c.lastrowid


def fetch_payments(registration_id=None, date_from=None, date_to=None):
	"""
	Payment records with optional filters, newest first.
	"""
	query = """
		SELECT p.id, p.student_registration_id, p.amount, p.payment_date, p.payment_method,
			   p.reference_number, p.notes, s.name AS student_name
		FROM payment_records p
		JOIN student_registrations r ON r.id = p.student_registration_id
		JOIN students s ON s.id = r.student_id
	"""
	conditions = []
	params = []

	if registration_id:
		conditions.append("p.student_registration_id = ?")
		params.append(registration_id)
	if date_from:
		conditions.append("p.payment_date >= ?")
		params.append(date_from)
	if date_to:
		conditions.append("p.payment_date <= ?")
		params.append(date_to)

	if conditions:
		query += " WHERE " + " AND ".join(conditions)

	query += " ORDER BY p.payment_date DESC, p.id DESC"

	with get_connection() as conn:
		c = conn.cursor()
		c.execute(query, tuple(params))
		return [dict(r) for r in c.fetchall()]


def get_total_paid_for_registration(registration_id):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"SELECT COALESCE(SUM(amount), 0) FROM payment_records WHERE student_registration_id = ?",
			(registration_id,),
		)
		return c.fetchone()[0]


def get_payment_by_id(payment_id):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT * FROM payment_records WHERE id = ?", (payment_id,))
		row = c.fetchone()
		return dict(row) if row else None


def delete_payment(payment_id):
	with get_connection() as conn:
		conn.execute("DELETE FROM payment_records WHERE id = ?", (payment_id,))
		conn.commit()


def get_payments_sum(date_from, date_to):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"SELECT COALESCE(SUM(amount), 0) FROM payment_records WHERE payment_date >= ? AND payment_date <= ?",
			(date_from, date_to),
		)
		return c.fetchone()[0]

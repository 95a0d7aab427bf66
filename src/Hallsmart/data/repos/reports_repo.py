import logging
from Hallsmart.data.db import get_connection

logger = logging.getLogger(__name__)


def get_monthly_financial_rows(date_from, date_to):
	"""One row per registration dated inside [date_from, date_to]."""
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("""
			SELECT
				r.id AS registration_id,
				s.serial_number,
				s.name AS student_name,
				t.name AS teacher_name,
				h.name AS hall_name,
				b.class_code,
				r.registration_date,
				COALESCE(r.total_fees, 0) AS total_fees,
				COALESCE(r.paid_amount, 0) AS paid_amount,
				r.payment_status
			FROM student_registrations r
			JOIN students s ON s.id = r.student_id
			JOIN bookings b ON b.id = r.booking_id
			JOIN teachers t ON t.id = b.teacher_id
			JOIN halls h ON h.id = b.hall_id
			WHERE r.registration_date >= ? AND r.registration_date <= ?
			ORDER BY t.name COLLATE NOCASE, b.class_code, s.name COLLATE NOCASE
		""", (date_from, date_to))
		rows = c.fetchall()

	result = []
	for row in rows:
		item = dict(row)
		item["remaining"] = max(item["total_fees"] - item["paid_amount"], 0)
		result.append(item)
	return result


def get_booking_summaries(date_from, date_to):
	"""Per booking totals for registrations inside the range."""
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("""
			SELECT
				b.id AS booking_id,
				b.class_code,
				t.name AS teacher_name,
				h.name AS hall_name,
				h.capacity,
				b.class_fees,
				b.is_custom_fee,
				COUNT(r.id) AS registrations,
				COALESCE(SUM(r.total_fees), 0) AS total_fees,
				COALESCE(SUM(r.paid_amount), 0) AS total_paid,
				SUM(CASE WHEN r.payment_status = 'paid' THEN 1 ELSE 0 END) AS paid_count
			FROM bookings b
			JOIN teachers t ON t.id = b.teacher_id
			JOIN halls h ON h.id = b.hall_id
			LEFT JOIN student_registrations r
				ON r.booking_id = b.id
				AND r.registration_date >= ? AND r.registration_date <= ?
			GROUP BY b.id
			ORDER BY t.name COLLATE NOCASE, b.class_code
		""", (date_from, date_to))
		rows = c.fetchall()

	result = []
	for row in rows:
		item = dict(row)
		item["is_custom_fee"] = bool(item["is_custom_fee"])
		item["outstanding"] = item["total_fees"] - item["total_paid"]
		cap = item.pop("capacity") or 0
		item["occupancy_percentage"] = round(100.0 * item["registrations"] / cap, 1) if cap else 0.0
		result.append(item)
	return result


def get_financial_summary(date_from, date_to):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("""
			SELECT
				COALESCE(SUM(CASE WHEN type = 'income'  THEN amount ELSE 0 END), 0),
				COALESCE(SUM(CASE WHEN type = 'expense' THEN amount ELSE 0 END), 0)
			FROM daily_settlements
			WHERE settlement_date >= ? AND settlement_date <= ?
		""", (date_from, date_to))
		income, expenses = c.fetchone()
		c.execute("""
			SELECT COALESCE(SUM(amount), 0) FROM payment_records
			WHERE payment_date >= ? AND payment_date <= ?
		""", (date_from, date_to))
		collected = c.fetchone()[0]
	return {
		"total_income": income,
		"total_expenses": expenses,
		"net_amount": income - expenses,
		"student_payments": collected,
	}

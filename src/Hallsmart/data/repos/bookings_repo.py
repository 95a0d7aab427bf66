import logging
from Hallsmart.data.db import get_connection

logger = logging.getLogger(__name__)

BOOKING_STATUSES = {"active", "cancelled", "completed"}


def _days_to_text(days_of_week):
	if isinstance(days_of_week, str):
		days = [d.strip() for d in days_of_week.split(",") if d.strip()]
	else:
		days = [str(d) for d in days_of_week]
	if not days:
		raise ValueError("days_of_week must not be empty")
	for d in days:
		if d not in {"0", "1", "2", "3", "4", "5", "6"}:
			raise ValueError(f"invalid weekday: {d}")
	return ",".join(sorted(set(days), key=int))


def _row_to_booking(row):
	if row is None:
		return None
	booking = dict(row)
	booking["days_of_week"] = [int(d) for d in booking["days_of_week"].split(",") if d]
	booking["is_custom_fee"] = bool(booking.get("is_custom_fee"))
	return booking


def generate_class_code(teacher_id, days_of_week, start_time):
	"""<teacher code or T<id>>-<days>-<HHMM>, e.g. PHY-135-1600."""
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT teacher_code FROM teachers WHERE id = ?", (teacher_id,))
		row = c.fetchone()
	prefix = row[0] if row and row[0] else f"T{teacher_id}"
	days = _days_to_text(days_of_week).replace(",", "")
	return f"{prefix}-{days}-{start_time.replace(':', '')[:4]}"


def create_booking(hall_id, teacher_id, academic_stage_id, start_time, days_of_week,
				   start_date, end_date=None, class_fees=None, number_of_students=0,
				   status="active", created_by=None):
	if status not in BOOKING_STATUSES:
		raise ValueError("invalid booking status")
	if end_date is not None and end_date < start_date:
		raise ValueError("end_date must not precede start_date")
	days_text = _days_to_text(days_of_week)
	with get_connection() as conn:
		c = conn.cursor()
		# new bookings inherit the teacher's default fee as a template value
		if class_fees is None:
			c.execute("SELECT default_class_fee FROM teachers WHERE id = ?", (teacher_id,))
			row = c.fetchone()
			class_fees = row[0] if row and row[0] is not None else 0
		if class_fees < 0:
			raise ValueError("class_fees must be non-negative")
		c.execute(
			"""
			INSERT INTO bookings
				(hall_id, teacher_id, academic_stage_id, start_time, days_of_week,
				 start_date, end_date, status, class_fees, number_of_students, created_by)
			VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
			""",
			(hall_id, teacher_id, academic_stage_id, start_time, days_text,
			 start_date, end_date, status, class_fees, number_of_students, created_by),
		)
		booking_id = c.lastrowid
		conn.commit()
	code = generate_class_code(teacher_id, days_text, start_time)
	with get_connection() as conn:
		conn.execute("UPDATE bookings SET class_code = ? WHERE id = ?", (code, booking_id))
		conn.commit()
	return booking_id


def get_booking_by_id(booking_id):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT * FROM bookings WHERE id = ?", (booking_id,))
		return _row_to_booking(c.fetchone())


def fetch_bookings(status=None):
	query = """
		SELECT b.*, h.name AS hall_name, t.name AS teacher_name, s.name AS stage_name
		FROM bookings b
		JOIN halls h ON h.id = b.hall_id
		JOIN teachers t ON t.id = b.teacher_id
		JOIN academic_stages s ON s.id = b.academic_stage_id
	"""
	params = []
	if status:
		query += " WHERE b.status = ?"
		params.append(status)
	query += " ORDER BY b.start_date DESC, b.id DESC"
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(query, params)
		return [_row_to_booking(r) for r in c.fetchall()]


def fetch_bookings_by_teacher(teacher_id):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT * FROM bookings WHERE teacher_id = ? ORDER BY id", (teacher_id,))
		return [_row_to_booking(r) for r in c.fetchall()]


def fetch_bookings_by_ids(booking_ids):
	booking_ids = list(booking_ids)
	if not booking_ids:
		return []
	placeholders = ",".join("?" * len(booking_ids))
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(f"SELECT * FROM bookings WHERE id IN ({placeholders}) ORDER BY id", booking_ids)
		return [_row_to_booking(r) for r in c.fetchall()]


def fetch_active_booking_ids():
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT id FROM bookings WHERE status = 'active' ORDER BY id")
		return [row[0] for row in c.fetchall()]


def update_booking_by_id(booking_id, **fields):
	allowed = {
		"hall_id", "teacher_id", "academic_stage_id", "start_time", "days_of_week",
		"start_date", "end_date", "status", "number_of_students",
	}
	unknown = set(fields) - allowed
	if unknown:
		raise ValueError(f"unknown booking fields: {', '.join(sorted(unknown))}")
	if not fields:
		return False
	if "status" in fields and fields["status"] not in BOOKING_STATUSES:
		raise ValueError("invalid booking status")
	if "days_of_week" in fields:
		fields["days_of_week"] = _days_to_text(fields["days_of_week"])
	assignments = ", ".join(f"{k}=?" for k in fields)
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			f"UPDATE bookings SET {assignments}, updated_at=datetime('now','localtime') WHERE id=?",
			(*fields.values(), booking_id),
		)
		conn.commit()
		return c.rowcount > 0


def set_booking_status(booking_id, status):
	return update_booking_by_id(booking_id, status=status)


def set_booking_fee(booking_id, fee, is_custom=None):
	"""Set class_fees; is_custom=None leaves the custom-fee flag untouched."""
	if fee < 0:
		raise ValueError("fee must be non-negative")
	with get_connection() as conn:
		c = conn.cursor()
		if is_custom is None:
			c.execute(
				"UPDATE bookings SET class_fees=?, updated_at=datetime('now','localtime') WHERE id=?",
				(fee, booking_id),
			)
		else:
			c.execute(
				"""
				UPDATE bookings
				SET class_fees=?, is_custom_fee=?, updated_at=datetime('now','localtime')
				WHERE id=?
				""",
				(fee, 1 if is_custom else 0, booking_id),
			)
		conn.commit()
		return c.rowcount > 0


def set_custom_fee_flag(booking_id, is_custom):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"UPDATE bookings SET is_custom_fee=?, updated_at=datetime('now','localtime') WHERE id=?",
			(1 if is_custom else 0, booking_id),
		)
		conn.commit()
		return c.rowcount > 0


def update_fee_for_bookings(booking_ids, fee):
	"""Bulk class_fees update; custom-fee bookings are excluded at the SQL level too."""
	booking_ids = list(booking_ids)
	if not booking_ids:
		return 0
	placeholders = ",".join("?" * len(booking_ids))
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			f"""
			UPDATE bookings
			SET class_fees=?, updated_at=datetime('now','localtime')
			WHERE id IN ({placeholders}) AND is_custom_fee = 0
			""",
			(fee, *booking_ids),
		)
		conn.commit()
		return c.rowcount


def delete_booking_by_id(booking_id):
	with get_connection() as conn:
		conn.execute("DELETE FROM bookings WHERE id=?", (booking_id,))
		conn.commit()


def has_booking_conflict(hall_id, days_of_week, start_time, start_date, end_date=None, exclude_booking_id=None):
	"""
	True when another non-cancelled booking holds the same hall, on a shared
	weekday, at the same start time, within an overlapping date window.
	"""
	wanted_days = set(_days_to_text(days_of_week).split(","))
	query = """
		SELECT id, days_of_week FROM bookings
		WHERE hall_id = ?
		  AND start_time = ?
		  AND status != 'cancelled'
		  AND (end_date IS NULL OR end_date >= ?)
	"""
	params = [hall_id, start_time, start_date]
	if end_date is not None:
		query += " AND start_date <= ?"
		params.append(end_date)
	if exclude_booking_id:
		query += " AND id != ?"
		params.append(exclude_booking_id)
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(query, params)
		for _booking_id, days_text in c.fetchall():
			if wanted_days & set(days_text.split(",")):
				return True
	return False

import logging
from Hallsmart.data.db import get_connection

logger = logging.getLogger(__name__)


def migrate_bookings_custom_fee_column():
	"""
	Add bookings.is_custom_fee to databases created before per-booking fee
	overrides existed. Existing bookings start as non-custom.
	"""
	with get_connection() as conn:
		c = conn.cursor()

		c.execute("PRAGMA table_info(bookings)")
		cols = [r[1] for r in c.fetchall()]
		if "is_custom_fee" in cols:
			return

		logger.info("Adding column bookings.is_custom_fee ...")
		c.execute("ALTER TABLE bookings ADD COLUMN is_custom_fee INTEGER NOT NULL DEFAULT 0")
		c.execute("CREATE INDEX IF NOT EXISTS idx_bookings_custom_fee ON bookings(is_custom_fee);")
		conn.commit()


def migrate_registrations_payment_status():
	"""
	Repair cached payment_status values that drifted from
	(paid_amount, total_fees). Safe to run repeatedly.
	"""
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("""
			UPDATE student_registrations
			   SET payment_status = CASE
					WHEN COALESCE(paid_amount, 0) = 0 THEN 'pending'
					WHEN COALESCE(paid_amount, 0) >= COALESCE(total_fees, 0) THEN 'paid'
					ELSE 'partial'
				END,
				updated_at = datetime('now','localtime')
			 WHERE payment_status != CASE
					WHEN COALESCE(paid_amount, 0) = 0 THEN 'pending'
					WHEN COALESCE(paid_amount, 0) >= COALESCE(total_fees, 0) THEN 'paid'
					ELSE 'partial'
				END
		""")
		if c.rowcount:
			logger.warning("Repaired payment_status on %d registrations.", c.rowcount)
		conn.commit()

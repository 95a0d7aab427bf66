import logging
from Hallsmart.data.db import get_connection
from Hallsmart.data.migrations import (
	migrate_bookings_custom_fee_column,
	migrate_registrations_payment_status,
)

logger = logging.getLogger(__name__)


def create_tables():
	"""Create all tables with FKs, CHECK constraints, indexes, and audit columns."""
	with get_connection() as conn:
		c = conn.cursor()

		# Profiles (application users)
		c.execute("""
			CREATE TABLE IF NOT EXISTS profiles (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				auth_user_id TEXT UNIQUE,
				username TEXT UNIQUE NOT NULL,
				full_name TEXT,
				email TEXT,
				phone TEXT,
				user_role TEXT NOT NULL DEFAULT 'read_only'
					CHECK (user_role IN ('owner','manager','space_manager','teacher','read_only')),
				is_admin INTEGER NOT NULL DEFAULT 0,
				teacher_id INTEGER,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime')),
				FOREIGN KEY(teacher_id) REFERENCES teachers(id) ON DELETE SET NULL
			);
		""")
		# Halls
		c.execute("""
			CREATE TABLE IF NOT EXISTS halls (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				name TEXT UNIQUE NOT NULL,
				capacity INTEGER NOT NULL DEFAULT 0,
				operating_start_time TEXT,
				operating_end_time TEXT,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime'))
			);
		""")
		# Academic stages
		c.execute("""
			CREATE TABLE IF NOT EXISTS academic_stages (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				name TEXT UNIQUE NOT NULL,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime'))
			);
		""")
		# Teachers
		c.execute("""
			CREATE TABLE IF NOT EXISTS teachers (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				name TEXT NOT NULL,
				mobile_phone TEXT,
				teacher_code TEXT UNIQUE,
				default_class_fee REAL,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime'))
			);
		""")
		# Students
		c.execute("""
			CREATE TABLE IF NOT EXISTS students (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				serial_number TEXT UNIQUE NOT NULL,
				name TEXT NOT NULL,
				mobile_phone TEXT NOT NULL,
				parent_phone TEXT,
				city TEXT,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime'))
			);
		""")
		# Bookings (recurring class slot)
		c.execute("""
			CREATE TABLE IF NOT EXISTS bookings (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				hall_id INTEGER NOT NULL,
				teacher_id INTEGER NOT NULL,
				academic_stage_id INTEGER NOT NULL,
				start_time TEXT NOT NULL,
				days_of_week TEXT NOT NULL,
				start_date TEXT NOT NULL,
				end_date TEXT,
				status TEXT NOT NULL DEFAULT 'active'
					CHECK (status IN ('active','cancelled','completed')),
				class_fees REAL,
				class_code TEXT,
				number_of_students INTEGER NOT NULL DEFAULT 0,
				created_by INTEGER,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime')),
				FOREIGN KEY(hall_id) REFERENCES halls(id) ON DELETE CASCADE ON UPDATE CASCADE,
				FOREIGN KEY(teacher_id) REFERENCES teachers(id) ON DELETE CASCADE ON UPDATE CASCADE,
				FOREIGN KEY(academic_stage_id) REFERENCES academic_stages(id) ON DELETE CASCADE ON UPDATE CASCADE,
				FOREIGN KEY(created_by) REFERENCES profiles(id) ON DELETE SET NULL
			);
		""")
		# Student registrations (one row per student per month per booking)
		c.execute("""
			CREATE TABLE IF NOT EXISTS student_registrations (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				student_id INTEGER NOT NULL,
				booking_id INTEGER NOT NULL,
				registration_date TEXT NOT NULL,
				total_fees REAL NOT NULL DEFAULT 0,
				paid_amount REAL NOT NULL DEFAULT 0,
				payment_status TEXT NOT NULL DEFAULT 'pending'
					CHECK (payment_status IN ('pending','partial','paid')),
				notes TEXT,
				created_by INTEGER,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime')),
				FOREIGN KEY(student_id) REFERENCES students(id) ON DELETE CASCADE ON UPDATE CASCADE,
				FOREIGN KEY(booking_id) REFERENCES bookings(id) ON DELETE CASCADE ON UPDATE CASCADE
			);
		""")
		# Payment records
		c.execute("""
			CREATE TABLE IF NOT EXISTS payment_records (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				student_registration_id INTEGER NOT NULL,
				amount REAL NOT NULL CHECK (amount >= 0),
				payment_date TEXT NOT NULL,
				payment_method TEXT NOT NULL DEFAULT 'cash'
					CHECK (payment_method IN ('cash','card','transfer','other')),
				reference_number TEXT,
				notes TEXT,
				created_by INTEGER,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				FOREIGN KEY(student_registration_id) REFERENCES student_registrations(id) ON DELETE CASCADE
			);
		""")
		# Attendance records
		c.execute("""
			CREATE TABLE IF NOT EXISTS attendance_records (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				student_registration_id INTEGER NOT NULL,
				attendance_date TEXT NOT NULL,
				status TEXT NOT NULL DEFAULT 'present'
					CHECK (status IN ('present','absent','late','excused')),
				notes TEXT,
				created_by INTEGER,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				FOREIGN KEY(student_registration_id) REFERENCES student_registrations(id) ON DELETE CASCADE
			);
		""")
		# Daily settlements ledger
		c.execute("""
			CREATE TABLE IF NOT EXISTS daily_settlements (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				created_by INTEGER,
				settlement_date TEXT NOT NULL,
				type TEXT NOT NULL CHECK (type IN ('income','expense')),
				amount REAL NOT NULL,
				source_type TEXT NOT NULL,
				source_id TEXT,
				source_name TEXT NOT NULL,
				category TEXT,
				notes TEXT,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				updated_at TEXT DEFAULT (datetime('now','localtime')),
				FOREIGN KEY(created_by) REFERENCES profiles(id) ON DELETE SET NULL
			);
		""")
		# Change requests against settlements
		c.execute("""
			CREATE TABLE IF NOT EXISTS settlement_change_requests (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				settlement_id INTEGER,
				settlement_date TEXT NOT NULL,
				requested_by INTEGER NOT NULL,
				request_type TEXT NOT NULL CHECK (request_type IN ('edit','delete')),
				payload TEXT NOT NULL DEFAULT '{}',
				reason TEXT,
				status TEXT NOT NULL DEFAULT 'pending'
					CHECK (status IN ('pending','approved','rejected')),
				reviewed_by INTEGER,
				reviewed_at TEXT,
				created_at TEXT DEFAULT (datetime('now','localtime')),
				FOREIGN KEY(settlement_id) REFERENCES daily_settlements(id) ON DELETE SET NULL,
				FOREIGN KEY(requested_by) REFERENCES profiles(id) ON DELETE CASCADE,
				FOREIGN KEY(reviewed_by) REFERENCES profiles(id) ON DELETE SET NULL
			);
		""")
		# Audit log
		c.execute("""
			CREATE TABLE IF NOT EXISTS audit_logs (
				id INTEGER PRIMARY KEY AUTOINCREMENT,
				actor_user_id INTEGER,
				action TEXT NOT NULL,
				details TEXT,
				created_at TEXT DEFAULT (datetime('now','localtime'))
			);
		""")
		# Settings table
		c.execute("""
			CREATE TABLE IF NOT EXISTS settings (
				key TEXT PRIMARY KEY,
				value TEXT
			);
		""")

		c.execute("CREATE INDEX IF NOT EXISTS idx_bookings_teacher ON bookings(teacher_id);")
		c.execute("CREATE INDEX IF NOT EXISTS idx_bookings_hall ON bookings(hall_id);")
		c.execute("CREATE INDEX IF NOT EXISTS idx_registrations_booking ON student_registrations(booking_id);")
		c.execute("CREATE INDEX IF NOT EXISTS idx_registrations_date ON student_registrations(registration_date);")
		c.execute("CREATE INDEX IF NOT EXISTS idx_attendance_registration ON attendance_records(student_registration_id);")
		c.execute("CREATE INDEX IF NOT EXISTS idx_payments_registration ON payment_records(student_registration_id);")
		c.execute("CREATE INDEX IF NOT EXISTS idx_settlements_date ON daily_settlements(settlement_date);")
		c.execute("CREATE INDEX IF NOT EXISTS idx_change_requests_status ON settlement_change_requests(status);")

		conn.commit()

	migrate_bookings_custom_fee_column()
	migrate_registrations_payment_status()
	logger.info("Database schema ensured.")

import logging
from Hallsmart.data.db import get_connection

logger = logging.getLogger(__name__)


def insert_hall(name, capacity=0, operating_start_time=None, operating_end_time=None):
	if capacity < 0:
		raise ValueError("capacity must be non-negative")
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			INSERT INTO halls (name, capacity, operating_start_time, operating_end_time)
			VALUES (?, ?, ?, ?)
			""",
			(name, capacity, operating_start_time, operating_end_time),
		)
		conn.commit()
		return c.lastrowid


def fetch_halls():
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT id, name, capacity, operating_start_time, operating_end_time FROM halls ORDER BY name COLLATE NOCASE")
		return [dict(r) for r in c.fetchall()]


def get_hall_by_id(hall_id):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT * FROM halls WHERE id = ?", (hall_id,))
		row = c.fetchone()
		return dict(row) if row else None


def update_hall_by_id(hall_id, name, capacity, operating_start_time=None, operating_end_time=None):
	with get_connection() as conn:
		conn.execute(
			"""
			UPDATE halls
			SET name=?, capacity=?, operating_start_time=?, operating_end_time=?, updated_at=datetime('now','localtime')
			WHERE id=?
			""",
			(name, capacity, operating_start_time, operating_end_time, hall_id),
		)
		conn.commit()


def delete_hall_by_id(hall_id):
	with get_connection() as conn:
		conn.execute("DELETE FROM halls WHERE id=?", (hall_id,))
		conn.commit()

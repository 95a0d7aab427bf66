from Hallsmart.data.db import get_connection


def insert_stage(name):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("INSERT INTO academic_stages (name) VALUES (?)", (name,))
		conn.commit()
		return c.lastrowid


def fetch_stages():
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT id, name FROM academic_stages ORDER BY name COLLATE NOCASE")
		return [dict(r) for r in c.fetchall()]


def rename_stage(stage_id, name):
	with get_connection() as conn:
		conn.execute(
			"UPDATE academic_stages SET name=?, updated_at=datetime('now','localtime') WHERE id=?",
			(name, stage_id),
		)
		conn.commit()


def delete_stage_by_id(stage_id):
	with get_connection() as conn:
		conn.execute("DELETE FROM academic_stages WHERE id=?", (stage_id,))
		conn.commit()

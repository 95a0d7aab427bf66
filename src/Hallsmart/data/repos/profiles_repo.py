import logging
from Hallsmart.data.db import get_connection

logger = logging.getLogger(__name__)

USER_ROLES = ("owner", "manager", "space_manager", "teacher", "read_only")


def insert_profile(username, user_role="read_only", full_name=None, email=None, phone=None,
				   auth_user_id=None, is_admin=False, teacher_id=None):
	if user_role not in USER_ROLES:
		raise ValueError(f"invalid user_role: {user_role}")
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			INSERT INTO profiles (username, full_name, email, phone, user_role, auth_user_id, is_admin, teacher_id)
			VALUES (?, ?, ?, ?, ?, ?, ?, ?)
			""",
			(username, full_name, email, phone, user_role, auth_user_id, 1 if is_admin else 0, teacher_id),
		)
		conn.commit()
		return c.lastrowid


def _fetch_one(where, value):
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(f"SELECT * FROM profiles WHERE {where} = ?", (value,))
		row = c.fetchone()
	if not row:
		return None
	profile = dict(row)
	profile["is_admin"] = bool(profile["is_admin"])
	return profile


def get_profile_by_id(profile_id):
	return _fetch_one("id", profile_id)


def get_profile_by_username(username):
	return _fetch_one("username", username)


def get_profile_by_auth_id(auth_user_id):
	return _fetch_one("auth_user_id", auth_user_id)


def fetch_profiles():
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"SELECT id, username, full_name, email, user_role, is_admin FROM profiles ORDER BY username COLLATE NOCASE"
		)
		return [dict(r) for r in c.fetchall()]


def get_display_name(profile_id):
	"""full_name, else username, else None."""
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT full_name, username FROM profiles WHERE id = ?", (profile_id,))
		row = c.fetchone()
	if not row:
		return None
	return row[0] or row[1] or None


def update_profile_role(profile_id, user_role, teacher_id=None):
	if user_role not in USER_ROLES:
		raise ValueError(f"invalid user_role: {user_role}")
	with get_connection() as conn:
		c = conn.cursor()
		c.execute(
			"""
			UPDATE profiles
			SET user_role = ?, teacher_id = COALESCE(?, teacher_id), updated_at = datetime('now','localtime')
			WHERE id = ?
			""",
			(user_role, teacher_id, profile_id),
		)
		conn.commit()
		return c.rowcount > 0


def delete_profile(profile_id):
	with get_connection() as conn:
		conn.execute("DELETE FROM profiles WHERE id = ?", (profile_id,))
		conn.commit()

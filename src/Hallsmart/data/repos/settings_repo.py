import logging
from Hallsmart.data.db import get_connection

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"1", "true", "yes", "on", "enable", "enabled"}
_FALSE_STRINGS = {"0", "false", "no", "off", "disable", "disabled"}


def set_setting(key, value):
	"""Insert or update a setting key/value pair."""
	with get_connection() as conn:
		conn.execute(
			"REPLACE INTO settings (key, value) VALUES (?, ?)",
			(key, str(value))
		)
		conn.commit()


def get_setting(key, default=None):
	"""Retrieve a setting value by key, or return default."""
	with get_connection() as conn:
		c = conn.cursor()
		c.execute("SELECT value FROM settings WHERE key = ?", (key,))
		row = c.fetchone()
		return row[0] if row else default


# --- Boolean settings helpers (store as "0"/"1") ---

def get_setting_bool(key: str, default: bool = False) -> bool:
	raw = get_setting(key, None)
	if raw is None:
		return default
	s = str(raw).strip().lower()
	if s in _TRUE_STRINGS:
		return True
	if s in _FALSE_STRINGS:
		return False
	# unknown value: fall back to default
	return default


def set_setting_bool(key: str, value: bool):
	set_setting(key, "1" if bool(value) else "0")


def ensure_bool_setting(key: str, default: bool = False):
	"""
	Normalize a stored boolean to "0"/"1"; store default when missing.
	"""
	raw = get_setting(key, None)
	if raw is None:
		set_setting_bool(key, default)
		return
	if str(raw).strip() in {"0", "1"}:
		return
	set_setting_bool(key, str(raw).strip().lower() in _TRUE_STRINGS)

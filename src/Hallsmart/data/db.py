import sqlite3

from Hallsmart import paths


def get_connection():
	paths.DB_PATH.parent.mkdir(parents=True, exist_ok=True)
	conn = sqlite3.connect(paths.DB_PATH)
	conn.row_factory = sqlite3.Row
	conn.execute("PRAGMA foreign_keys = ON")
	conn.execute("PRAGMA journal_mode = WAL")
	conn.execute("PRAGMA synchronous = NORMAL")
	return conn


import os
import sys
import logging

from Hallsmart import paths
from Hallsmart.data.schema import create_tables
from Hallsmart.data.repos.settings_repo import ensure_bool_setting, get_setting, set_setting

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def ensure_logging(console=True):
    root = logging.getLogger()
    if root.handlers:
        return  # respect existing setup
    level = getattr(logging, (os.getenv("HALLSMART_LOG_LEVEL") or "INFO").upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    paths.LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(paths.LOG_PATH, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    root.setLevel(level)
    root.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)


def initialize_database():
    create_tables()
    ensure_bool_setting("rollover_reset_attendance", default=True)
    if get_setting("currency_unit") is None:
        set_setting("currency_unit", "toman")
    logging.getLogger(__name__).info("Database ready at %s", paths.DB_PATH)

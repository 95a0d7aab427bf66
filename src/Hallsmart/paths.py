from pathlib import Path
import platform, os

from dotenv import load_dotenv

APP_NAME = "Hallsmart"

load_dotenv()

def get_app_data_dir() -> Path:
    sysname = platform.system()
    if sysname == "Windows":
        base = Path(os.getenv("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return base / APP_NAME
    elif sysname == "Darwin":  # macOS
        return Path.home() / "Library" / "Application Support" / APP_NAME
    else: # Linux / others
        base = Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share"))
        return base / APP_NAME

APP_DATA_DIR = get_app_data_dir()

DB_PATH = Path(os.getenv("HALLSMART_DB_PATH") or APP_DATA_DIR / "hallsmart.db")
LOG_PATH = APP_DATA_DIR / "hallsmart.log"

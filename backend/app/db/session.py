import os
import sqlite3
import logging
from pathlib import Path
from sqlalchemy import create_engine

# Local sqlite store for the log tables; DATABASE_URL points elsewhere in prod
_HERE = Path(__file__).resolve().parent          # backend/app/db
DATA_DIR = _HERE.parent / "data"                 # backend/app/data
DATA_DIR.mkdir(parents=True, exist_ok=True)
DEFAULT_DB_URL = f"sqlite:///{(DATA_DIR / 'app.db').as_posix()}"

DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_DB_URL)
IS_SQLITE = DATABASE_URL.startswith("sqlite")

engine = create_engine(
    DATABASE_URL,
    future=True,
    pool_pre_ping=True,
    connect_args={"check_same_thread": False} if IS_SQLITE else {},
)

# Schema + demo rows for product_trends / visitor_logs
SQL_DIR = _HERE / "sql"
SCHEMA_SQL = SQL_DIR / "init_schema.sql"
DATA_SQL = SQL_DIR / "init_data.sql"
LOG_TABLES = ("product_trends", "visitor_logs")

def _sqlite_file() -> Path:
    return Path(engine.url.database)

def _missing_log_tables() -> list:
    with sqlite3.connect(_sqlite_file().as_posix()) as c:
        present = {r[0] for r in c.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    return [t for t in LOG_TABLES if t not in present]

def run_sql_script(path: Path) -> None:
    """Execute one of the bootstrap scripts against the sqlite file."""
    if not path.exists():
        raise FileNotFoundError(f"SQL file not found: {path}")
    with sqlite3.connect(_sqlite_file().as_posix()) as c:
        c.executescript(path.read_text(encoding="utf-8"))

def bootstrap_log_tables() -> None:
    """
    Create the dashboard log tables (and seed demo traffic) on a fresh sqlite
    database. RESET_DB=1 wipes the file first; AUTO_BOOTSTRAP_DB=0 disables it.
    Non-sqlite stores are expected to be provisioned separately.
    """
    if not IS_SQLITE:
        return
    if os.getenv("RESET_DB", "0") == "1" and _sqlite_file().exists():
        _sqlite_file().unlink()
    if os.getenv("AUTO_BOOTSTRAP_DB", "1") != "1":
        return

    missing = _missing_log_tables()
    if missing:
        logging.info("[DB] Creating log tables %s with demo data", ", ".join(missing))
        _sqlite_file().parent.mkdir(parents=True, exist_ok=True)
        run_sql_script(SCHEMA_SQL)
        run_sql_script(DATA_SQL)

try:
    bootstrap_log_tables()
except (OSError, sqlite3.Error) as e:
    logging.warning("[DB] Bootstrap skipped due to error: %s", e)

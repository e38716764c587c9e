# backend/tests/conftest.py
import os, sys, sqlite3, pathlib, pytest
from fastapi.testclient import TestClient

BACKEND_DIR = pathlib.Path(__file__).resolve().parents[1]   # .../backend
APP_DIR = BACKEND_DIR / "app"
DB_PATH = APP_DIR / "data" / "test.db"
SQL_DIR = APP_DIR / "db" / "sql"

# Make `from app.*` importable
sys.path.insert(0, str(BACKEND_DIR))

# Set the database path early (app.db.session builds the engine at import);
# tests seed their own rows instead of the demo data
os.environ["DATABASE_URL"] = f"sqlite:///{DB_PATH.as_posix()}"
os.environ["AUTO_BOOTSTRAP_DB"] = "0"

# (date, product_id, views)
PRODUCT_ROWS = [
    ("2024-01-01 10:00:00", 1, 3),
    ("2024-01-01 15:30:00", 2, 2),
    ("2024-01-03 09:00:00", 1, 2),
    ("2024-01-08 12:00:00", 3, 4),
    ("2024-01-31 23:59:59", 1, 10),
    ("2024-02-01 00:00:00", 2, 7),
]

# (date, ip_address)
VISITOR_ROWS = [
    ("2024-01-01 08:00:00", "10.0.0.1"),
    ("2024-01-01 09:00:00", "10.0.0.1"),
    ("2024-01-01 10:00:00", "10.0.0.2"),
    ("2024-01-02 11:00:00", "10.0.0.1"),
    ("2024-01-09 12:00:00", "10.0.0.3"),
    ("2024-01-09 13:00:00", "10.0.0.4"),
]

@pytest.fixture(scope="session", autouse=True)
def _prepare_db():
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    if DB_PATH.exists():
        DB_PATH.unlink()
    with sqlite3.connect(DB_PATH) as conn:
        conn.executescript((SQL_DIR / "init_schema.sql").read_text(encoding="utf-8"))
        conn.executemany(
            "INSERT INTO product_trends (date, product_id, views) VALUES (?, ?, ?)",
            PRODUCT_ROWS,
        )
        conn.executemany(
            "INSERT INTO visitor_logs (date, ip_address, path) VALUES (?, ?, '/')",
            VISITOR_ROWS,
        )
    yield

@pytest.fixture()
def api_app():
    from app.main import app as fastapi_app
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()

@pytest.fixture()
def client(api_app):
    return TestClient(api_app)

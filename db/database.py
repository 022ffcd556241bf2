import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from .schema import SCHEMA_SQL, INDEXES_SQL, SCHEMA_VERSION

CONFIG_DIR = Path.home() / ".linecoach"
DB_PATH = CONFIG_DIR / "linecoach.db"

logger = logging.getLogger(__name__)

def init_db():
    """Initialize the database by creating tables and indexes if they don't exist."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with get_conn() as conn:
        conn.executescript(SCHEMA_SQL)
        conn.executescript(INDEXES_SQL)
        ensure_script_chunk_size(conn)
        ensure_line_consecutive_correct(conn)
        ensure_review_chunk_index(conn)
        ensure_schema_version(conn)
        conn.commit()
    logger.info("Database ready at %s (schema v%d)", DB_PATH, SCHEMA_VERSION)

def ensure_script_chunk_size(conn: sqlite3.Connection) -> None:
    """Ensure scripts table has chunk_size column for existing installs."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA table_info(scripts)")
    columns = {row[1] for row in cursor.fetchall()}
    if "chunk_size" not in columns:
        cursor.execute("ALTER TABLE scripts ADD COLUMN chunk_size INTEGER NOT NULL DEFAULT 5")
        logger.info("Added scripts.chunk_size column")

def ensure_line_consecutive_correct(conn: sqlite3.Connection) -> None:
    """Ensure lines table has the chunk mastery streak column."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA table_info(lines)")
    columns = {row[1] for row in cursor.fetchall()}
    if "consecutive_correct" not in columns:
        cursor.execute(
            "ALTER TABLE lines ADD COLUMN consecutive_correct INTEGER NOT NULL DEFAULT 0"
        )
        logger.info("Added lines.consecutive_correct column")

def ensure_review_chunk_index(conn: sqlite3.Connection) -> None:
    """Ensure reviews table records the chunk that was active when grading."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA table_info(reviews)")
    columns = {row[1] for row in cursor.fetchall()}
    if "chunk_index" not in columns:
        cursor.execute("ALTER TABLE reviews ADD COLUMN chunk_index INTEGER")

def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the SQLite schema version from PRAGMA user_version."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA user_version")
    row = cursor.fetchone()
    return int(row[0]) if row else 0

def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Set the SQLite schema version via PRAGMA user_version."""
    conn.execute(f"PRAGMA user_version = {int(version)}")

def ensure_schema_version(conn: sqlite3.Connection) -> None:
    """Ensure the current schema version is written to the database."""
    current = get_schema_version(conn)
    if current != SCHEMA_VERSION:
        set_schema_version(conn, SCHEMA_VERSION)

@contextmanager
def get_conn():
    """Context manager for SQLite connection, using row_factory for dict-like rows."""
    conn = sqlite3.connect(DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()

def get_db():
    """FastAPI dependency that yields a DB connection and closes it afterwards."""
    with get_conn() as conn:
        yield conn

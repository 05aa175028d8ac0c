"""Database connection and schema initialization."""

import sqlite3
from pathlib import Path
import threading


def _casefold(value):
    if value is None:
        return None
    return str(value).casefold()


class Database:
    """SQLite database connection manager."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        self._ensure_directory()
        self.conn = sqlite3.connect(path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        # Unicode case folding for search; SQLite lower() is ASCII only.
        self.conn.create_function("casefold", 1, _casefold, deterministic=True)
        self._init_schema()

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        if self.path == ":memory:":
            return
        db_dir = Path(self.path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

    def _init_schema(self) -> None:
        """Initialize the database schema."""
        # Reference sequences, labels and attachments are JSON documents.
        schema = """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'user',
            is_active INTEGER NOT NULL DEFAULT 1,
            phone TEXT,
            date_of_birth TEXT,
            address TEXT,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS messages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            from_id INTEGER NOT NULL REFERENCES users(id),
            to_ids TEXT NOT NULL DEFAULT '[]',
            cc_ids TEXT NOT NULL DEFAULT '[]',
            bcc_ids TEXT NOT NULL DEFAULT '[]',
            subject TEXT NOT NULL,
            body TEXT NOT NULL,
            attachments TEXT NOT NULL DEFAULT '[]',
            is_read INTEGER NOT NULL DEFAULT 0,
            is_important INTEGER NOT NULL DEFAULT 0,
            is_draft INTEGER NOT NULL DEFAULT 0,
            is_deleted INTEGER NOT NULL DEFAULT 0,
            labels TEXT NOT NULL DEFAULT '[]',
            reply_to_id INTEGER REFERENCES messages(id),
            forwarded_from_id INTEGER REFERENCES messages(id),
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
        );

        CREATE INDEX IF NOT EXISTS idx_users_created_at ON users(created_at DESC);
        CREATE INDEX IF NOT EXISTS idx_messages_from ON messages(from_id, created_at DESC);
        CREATE INDEX IF NOT EXISTS idx_messages_created_at ON messages(created_at DESC);
        CREATE INDEX IF NOT EXISTS idx_messages_deleted ON messages(is_deleted);
        """
        with self._lock:
            self.conn.executescript(schema)
            self.conn.commit()

    def execute(self, query: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute a query with thread safety."""
        with self._lock:
            cursor = self.conn.execute(query, params)
            self.conn.commit()
            return cursor

    def fetchone(self, query: str, params: tuple = ()) -> sqlite3.Row | None:
        """Fetch one row."""
        with self._lock:
            cursor = self.conn.execute(query, params)
            return cursor.fetchone()

    def fetchall(self, query: str, params: tuple = ()) -> list[sqlite3.Row]:
        """Fetch all rows."""
        with self._lock:
            cursor = self.conn.execute(query, params)
            return cursor.fetchall()

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self.conn.close()

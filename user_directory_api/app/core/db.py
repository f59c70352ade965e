"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``) and applying migrations on application start
(``init_db``).  SQLite serves as the document store for user records:
list‑valued and opaque fields (socials, background, zone geometry) are
stored as JSON text, while the friendship relation and geo zones live
in their own tables so that uniqueness and ownership can be enforced
by constraints.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.

Consistency model: every service call opens its own connection and
commits once.  SQLite serialises writers per database, but two
concurrent updates of the same user are not coordinated beyond that;
the last committed write wins.
"""

import json
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from .config import settings


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the package root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # user_directory_api/
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Foreign key enforcement is switched on for every connection;
    the cascading deletes of friendships and zones depend on it.
    """
    conn = sqlite3.connect(get_database_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor, commits and closes the connection."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def utcnow_iso() -> str:
    """Current UTC time as an ISO‑8601 string (``2024-05-09T11:53:45.147000+00:00``)."""
    return datetime.now(timezone.utc).isoformat()


def dump_json(value: Any) -> Optional[str]:
    return json.dumps(value) if value is not None else None


def load_json(raw: Optional[str], default: Any = None) -> Any:
    return json.loads(raw) if raw else default


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: roles, users and the audit trail
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS roles (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            permissions TEXT
        );

        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            login TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            name TEXT NOT NULL,
            last_name TEXT NOT NULL DEFAULT '',
            email TEXT,
            phone TEXT UNIQUE,
            socials TEXT NOT NULL DEFAULT '[]',
            role_id INTEGER NOT NULL,
            avatar TEXT,
            background TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY(role_id) REFERENCES roles(id)
        );

        CREATE TABLE IF NOT EXISTS audit_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER,
            action TEXT NOT NULL,
            object_type TEXT,
            object_id INTEGER,
            timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            details TEXT
        );
        """,
    ),
    # Migration 2: one‑directional friendship relation
    (
        2,
        """
        -- The composite key rules out duplicate pairs, the CHECK rules out
        -- self‑friendship.  Rows disappear together with either user.
        CREATE TABLE IF NOT EXISTS user_friends (
            user_id INTEGER NOT NULL,
            friend_id INTEGER NOT NULL,
            created_at TEXT NOT NULL,
            PRIMARY KEY (user_id, friend_id),
            CHECK (user_id <> friend_id),
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY(friend_id) REFERENCES users(id) ON DELETE CASCADE
        );
        CREATE INDEX IF NOT EXISTS idx_user_friends_friend_id ON user_friends(friend_id);
        """,
    ),
    # Migration 3: geo zones owned by users
    (
        3,
        """
        -- AUTOINCREMENT guarantees zone ids are never reused, even after
        -- the row with the highest id has been deleted.
        CREATE TABLE IF NOT EXISTS geo_zones (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            name TEXT NOT NULL,
            geometry TEXT NOT NULL,
            metadata TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        );
        CREATE INDEX IF NOT EXISTS idx_geo_zones_user_id ON geo_zones(user_id);
        """,
    ),
]


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, applies any new entries of ``MIGRATIONS``
    and seeds the default roles.
    """
    with get_cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version

        # Default roles: super_admin (1), admin (2) and user (3)
        cursor.execute(
            "INSERT OR IGNORE INTO roles (id, name, permissions) VALUES (1, 'super_admin', '[]')"
        )
        cursor.execute(
            "INSERT OR IGNORE INTO roles (id, name, permissions) VALUES (2, 'admin', '[]')"
        )
        cursor.execute(
            "INSERT OR IGNORE INTO roles (id, name, permissions) VALUES (3, 'user', '[]')"
        )

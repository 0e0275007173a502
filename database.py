#!/usr/bin/env python3
"""
Database module for the Pinewood Derby manager.
Keeps the saved derby snapshot in SQLite.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

STATE_KEY = "pinewood_derby_state"


class DerbyDatabase:
    """Key-value store for derby snapshots in an SQLite database"""

    def __init__(self, db_path: str = "derby.db", key: str = STATE_KEY):
        self.db_path: Path = Path(db_path)
        self.key: str = key
        self.conn: sqlite3.Connection | None = None
        self._init_database()

    def _init_database(self) -> None:
        """Initialize database connection and create tables if needed"""
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row  # Enable column access by name

        cursor = self.conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS snapshots (
                key TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                saved_at TEXT NOT NULL
            )
        """)
        self.conn.commit()

    def load(self) -> dict[str, Any] | None:
        """Return the saved snapshot, or None if nothing is saved or it can't be read"""
        assert self.conn is not None
        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT payload FROM snapshots WHERE key = ?", (self.key,))
            row = cursor.fetchone()
            return json.loads(row["payload"]) if row else None
        except (sqlite3.Error, json.JSONDecodeError) as e:
            logging.error(f"Error loading state: {e}")
            return None

    def save(self, snapshot: dict[str, Any]) -> bool:
        """Store the snapshot, replacing any earlier one. Returns False if it couldn't be saved"""
        assert self.conn is not None
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                INSERT INTO snapshots (key, payload, saved_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    payload = excluded.payload,
                    saved_at = excluded.saved_at
            """,
                (self.key, json.dumps(snapshot), datetime.now().isoformat()),
            )
            self.conn.commit()
            return True
        except (sqlite3.Error, TypeError, ValueError) as e:
            logging.error(f"Error saving state: {e}")
            return False

    def saved_at(self) -> str | None:
        """When the snapshot was last saved, as an ISO timestamp"""
        assert self.conn is not None
        cursor = self.conn.cursor()
        cursor.execute("SELECT saved_at FROM snapshots WHERE key = ?", (self.key,))
        row = cursor.fetchone()
        return row["saved_at"] if row else None

    def clear(self) -> None:
        """Delete the saved snapshot"""
        assert self.conn is not None
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM snapshots WHERE key = ?", (self.key,))
        self.conn.commit()

    def close(self) -> None:
        """Close database connection"""
        if self.conn:
            self.conn.close()

    def __enter__(self) -> "DerbyDatabase":
        """Context manager entry"""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit"""
        self.close()

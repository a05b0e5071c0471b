"""
Short-lived keyed values stored in the ``transients`` table.

Each entry carries an absolute expiry; expired rows are treated as missing
and removed when read.
"""
import json
import logging
import sqlite3
import time
from smoothbook_app.models.database import get_db

logger = logging.getLogger(__name__)

def set_transient(key, value, ttl):
    """Store a JSON-serialisable value under ``key`` for ``ttl`` seconds."""
    expires_at = time.time() + ttl
    try:
        with get_db() as conn:
            conn.execute(
                '''
                INSERT INTO transients (key, value, expires_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, expires_at = excluded.expires_at
                ''',
                (key, json.dumps(value), expires_at)
            )
        logger.debug(f"Stored transient {key} (ttl {ttl}s)")
        return True
    except sqlite3.Error as e:
        logger.error(f"Failed to store transient {key}: {str(e)}")
        return False

def get_transient(key):
    """Return the stored value, or None if the key is missing or expired."""
    try:
        row = get_db().execute(
            "SELECT value, expires_at FROM transients WHERE key = ?", (key,)
        ).fetchone()
    except sqlite3.Error as e:
        logger.error(f"Failed to read transient {key}: {str(e)}")
        return None

    if row is None:
        return None
    if row['expires_at'] <= time.time():
        logger.debug(f"Transient {key} expired")
        delete_transient(key)
        return None
    try:
        return json.loads(row['value'])
    except ValueError as e:
        logger.warning(f"Discarding unreadable transient {key}: {e}")
        delete_transient(key)
        return None

def delete_transient(key):
    try:
        with get_db() as conn:
            conn.execute("DELETE FROM transients WHERE key = ?", (key,))
        return True
    except sqlite3.Error as e:
        logger.error(f"Failed to delete transient {key}: {str(e)}")
        return False

def purge_expired_transients():
    """Delete every expired row; returns the number removed."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM transients WHERE expires_at <= ?", (time.time(),))
        return cursor.rowcount

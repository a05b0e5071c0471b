import logging
import sqlite3
from flask_login import current_user
from smoothbook_app.models.database import get_db

logger = logging.getLogger(__name__)

def current_username():
    """Username of the logged-in user, or 'anonymous'."""
    if current_user and current_user.is_authenticated:
        return current_user.username
    return 'anonymous'

def log_audit_action(username, action, target, details=None):
    """Log an action to the audit_log table and logger."""
    try:
        with get_db() as conn:
            conn.execute(
                "INSERT INTO audit_log (username, action, target, details) VALUES (?, ?, ?, ?)",
                (username, action, target, details)
            )
            logger.debug(f"Audit log created: {username} - {action} - {target}")
    except sqlite3.Error as e:
        logger.error(f"Failed to log audit action for {username}: {str(e)}")

def get_audit_entries(target=None, limit=50):
    """Most recent audit entries, newest first, optionally filtered by target."""
    query = "SELECT username, action, target, timestamp, details FROM audit_log"
    params = []
    if target:
        query += " WHERE target = ?"
        params.append(target)
    query += " ORDER BY id DESC LIMIT ?"
    params.append(limit)
    return get_db().execute(query, params).fetchall()

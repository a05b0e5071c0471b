import logging
import sqlite3
from smoothbook_app.models.database import get_db

logger = logging.getLogger(__name__)

def get_setting(category, key, default=None):
    """Return a stored setting value, or ``default`` when it is missing or empty."""
    try:
        with get_db() as db:
            c = db.cursor()
            c.execute("SELECT value FROM settings WHERE category = ? AND key = ?", (category, key))
            row = c.fetchone()
            if row and row[0]:
                return row[0]
    except sqlite3.Error as e:
        logger.error(f"Failed to read setting {category}.{key}: {e}")
    return default

def get_datetime_format():
    date_format = get_setting('general', 'date_format', '%Y-%m-%d')
    time_format = get_setting('general', 'time_format', '%H:%M')
    return f"{date_format} {time_format}"

def get_site_timezone(fallback='Europe/Budapest'):
    return get_setting('general', 'timezone_string', fallback)

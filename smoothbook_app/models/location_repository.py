import logging
from datetime import datetime
import pytz
from flask import current_app
from smoothbook_app.models.database import get_db
from smoothbook_app.models.Location import Location
from smoothbook_app.utils.constants import DB_DATETIME_FORMAT

logger = logging.getLogger(__name__)

WRITABLE_COLUMNS = (
    'name', 'profile_image_id', 'address', 'phone', 'base_email', 'website', 'timezone',
    'industry_id', 'is_event_location', 'company_name', 'company_address', 'company_phone',
)

def local_now():
    """Current site-local time in the database datetime format."""
    tz = pytz.timezone(current_app.config.get('TIMEZONE', 'UTC'))
    return datetime.now(tz).strftime(DB_DATETIME_FORMAT)

class LocationRepository:
    """SQLite access to the ``locations`` table.

    Query helpers return ``Location`` objects or None; write failures surface
    as ``sqlite3.Error`` for the caller to handle.
    """

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        return self._db if self._db is not None else get_db()

    def all(self, include_deleted=False, only_deleted=False):
        sql = "SELECT * FROM locations"
        params = []
        if only_deleted:
            sql += " WHERE is_deleted = ?"
            params.append(1)
        elif not include_deleted:
            sql += " WHERE is_deleted = ?"
            params.append(0)
        sql += " ORDER BY name COLLATE NOCASE ASC, location_id ASC"

        rows = self.db.execute(sql, params).fetchall()
        logger.debug(f"Fetched {len(rows)} locations (include_deleted={include_deleted}, only_deleted={only_deleted})")
        return [Location.from_row(row) for row in rows]

    def find(self, location_id):
        if location_id <= 0:
            return None
        row = self.db.execute(
            "SELECT * FROM locations WHERE location_id = ? AND is_deleted = 0", (location_id,)
        ).fetchone()
        return Location.from_row(row) if row else None

    def find_with_deleted(self, location_id):
        if location_id <= 0:
            return None
        row = self.db.execute(
            "SELECT * FROM locations WHERE location_id = ?", (location_id,)
        ).fetchone()
        return Location.from_row(row) if row else None

    def _values(self, data):
        values = {column: data.get(column) for column in WRITABLE_COLUMNS}
        values['profile_image_id'] = values['profile_image_id'] or None
        values['industry_id'] = values['industry_id'] or 0
        values['is_event_location'] = 1 if values['is_event_location'] else 0
        return values

    def create(self, data):
        values = self._values(data)
        now = local_now()
        values.update(is_deleted=0, created_at=now, updated_at=now)
        columns = ', '.join(values)
        placeholders = ', '.join('?' for _ in values)
        with self.db as conn:
            cursor = conn.execute(
                f"INSERT INTO locations ({columns}) VALUES ({placeholders})", list(values.values())
            )
        location_id = cursor.lastrowid
        logger.info(f"Inserted location #{location_id}")
        return self.find_with_deleted(location_id)

    def update(self, location_id, data):
        values = self._values(data)
        values['updated_at'] = local_now()
        assignments = ', '.join(f"{column} = ?" for column in values)
        with self.db as conn:
            conn.execute(
                f"UPDATE locations SET {assignments} WHERE location_id = ?",
                list(values.values()) + [location_id]
            )
        logger.info(f"Updated location #{location_id}")
        return self.find_with_deleted(location_id)

    def soft_delete(self, location_id):
        return self._set_deleted(location_id, 1)

    def restore(self, location_id):
        return self._set_deleted(location_id, 0)

    def _set_deleted(self, location_id, flag):
        with self.db as conn:
            cursor = conn.execute(
                "UPDATE locations SET is_deleted = ?, updated_at = ? WHERE location_id = ?",
                (flag, local_now(), location_id)
            )
        logger.info(f"Set is_deleted={flag} on location #{location_id}")
        return cursor.rowcount > 0

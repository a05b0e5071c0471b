"""
SQLite storage: one connection per app context, schema bootstrap and
default settings.
"""
import logging
import os
import sqlite3
from flask import g, current_app

logger = logging.getLogger(__name__)

TABLES = (
    ('users', '''
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'subscriber',
            theme TEXT,
            last_login DATETIME,
            created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    '''),
    ('locations', '''
        CREATE TABLE IF NOT EXISTS locations (
            location_id INTEGER PRIMARY KEY AUTOINCREMENT,
            name VARCHAR(150) NOT NULL,
            profile_image_id INTEGER,
            address VARCHAR(255),
            phone VARCHAR(50),
            base_email VARCHAR(150),
            website VARCHAR(255),
            timezone VARCHAR(64) NOT NULL DEFAULT 'Europe/Budapest',
            industry_id INTEGER NOT NULL DEFAULT 0,
            is_event_location INTEGER NOT NULL DEFAULT 0,
            company_name VARCHAR(150),
            company_address VARCHAR(255),
            company_phone VARCHAR(50),
            is_deleted INTEGER NOT NULL DEFAULT 0,
            created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    '''),
    ('audit_log', '''
        CREATE TABLE IF NOT EXISTS audit_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL,
            action TEXT NOT NULL,
            target TEXT NOT NULL,
            details TEXT,
            timestamp DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    '''),
    ('settings', '''
        CREATE TABLE IF NOT EXISTS settings (
            category TEXT NOT NULL,
            key TEXT NOT NULL,
            value TEXT,
            PRIMARY KEY (category, key)
        )
    '''),
    ('transients', '''
        CREATE TABLE IF NOT EXISTS transients (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            expires_at REAL NOT NULL
        )
    '''),
)

INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_locations_deleted_name ON locations (is_deleted, name)",
    "CREATE INDEX IF NOT EXISTS idx_audit_log_target ON audit_log (target)",
    "CREATE INDEX IF NOT EXISTS idx_transients_expires ON transients (expires_at)",
)

DEFAULT_SETTINGS = (
    ('general', 'date_format', '%Y-%m-%d'),
    ('general', 'time_format', '%H:%M'),
    ('general', 'timezone_string', 'Europe/Budapest'),
    ('ui', 'default_theme', 'light'),
)

def connect(db_path):
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute('PRAGMA foreign_keys = ON')
    return conn

def get_db():
    """Connection bound to the current app context, opened on first use."""
    if 'db' not in g:
        db_path = current_app.config['DB_PATH']
        try:
            g.db = connect(db_path)
        except sqlite3.Error as e:
            logger.error(f"Could not open database {db_path}: {str(e)}")
            raise
        logger.debug(f"Opened database {db_path}")
    return g.db

def close_db(e=None):
    conn = g.pop('db', None)
    if conn is None:
        return
    try:
        conn.close()
    except sqlite3.Error as err:
        logger.error(f"Could not close database connection: {str(err)}")

def init_db():
    """Create missing tables and indexes and seed default settings."""
    db_path = current_app.config['DB_PATH']
    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    conn = connect(db_path)
    try:
        with conn:
            for table, ddl in TABLES:
                conn.execute(ddl)
                logger.debug(f"Ensured table {table}")
            for ddl in INDEXES:
                conn.execute(ddl)
            # Existing values win over defaults
            conn.executemany(
                "INSERT OR IGNORE INTO settings (category, key, value) VALUES (?, ?, ?)",
                DEFAULT_SETTINGS
            )
    except sqlite3.Error as e:
        logger.error(f"Schema bootstrap failed for {db_path}: {str(e)}")
        raise
    finally:
        conn.close()
    logger.info(f"Database ready at {db_path}")

def init_app(app):
    """Bootstrap the schema and close connections at the end of each app context."""
    with app.app_context():
        init_db()
    app.teardown_appcontext(close_db)

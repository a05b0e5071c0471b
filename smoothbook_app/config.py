import os
import secrets
from dotenv import load_dotenv

# Values in a local .env file fill in missing environment variables
load_dotenv()

base_dir = os.path.abspath(os.path.dirname(__file__))

def env_flag(name, default):
    return os.getenv(name, str(int(default))).strip().lower() in ('1', 'true', 'yes', 'on')

def env_int(name, default):
    return int(os.getenv(name, default))

class Config:
    """Settings shared by every environment; each one can be set from the environment."""
    # --- Sessions & forms ---
    SECRET_KEY = os.getenv('SECRET_KEY') or secrets.token_hex(32)
    SESSION_COOKIE_SECURE = env_flag('SESSION_COOKIE_SECURE', True)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    NONCE_LIFETIME = env_int('NONCE_LIFETIME', 86400)  # seconds

    # --- Storage ---
    DB_PATH = os.getenv('DB_PATH', os.path.join(base_dir, 'data', 'smoothbook.db'))

    # --- Log files ---
    LOG_DIR = os.getenv('LOG_DIR', os.path.join(base_dir, 'logs'))
    APP_LOG_FILE = os.getenv('APP_LOG_FILE', 'app.log')
    DEBUG_LOG_FILE = os.getenv('DEBUG_LOG_FILE', 'debug.log')
    ERROR_LOG_FILE = os.getenv('ERROR_LOG_FILE', 'error.log')
    LOG_MAX_BYTES = env_int('LOG_MAX_BYTES', 10 * 1024 * 1024)
    LOG_BACKUP_COUNT = env_int('LOG_BACKUP_COUNT', 7)
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # --- Flask-Limiter ---
    RATELIMIT_ENABLED = env_flag('RATELIMIT_ENABLED', True)
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')

    # --- Time ---
    TIMEZONE = os.getenv('TIMEZONE', 'Europe/Budapest')
    DEFAULT_LOCATION_TIMEZONE = os.getenv('DEFAULT_LOCATION_TIMEZONE', 'Europe/Budapest')

    # --- Locations screen ---
    NOTICE_TTL = env_int('NOTICE_TTL', 60)  # seconds a one-shot notice survives
    MEDIA_URL_TEMPLATE = os.getenv('MEDIA_URL_TEMPLATE', '/media/{id}/thumbnail')
    LOCATION_INDUSTRY_GROUPS = None  # overrides the built-in industry table

class DevelopmentConfig(Config):
    DEBUG = True
    SESSION_COOKIE_SECURE = False
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')

class ProductionConfig(Config):
    DEBUG = False
    SESSION_COOKIE_SECURE = True

class TestingConfig(Config):
    """Throwaway database, fixed secret, no rate limits, quiet logs."""
    TESTING = True
    DEBUG = False
    SECRET_KEY = 'testing-secret-key'
    SESSION_COOKIE_SECURE = False
    RATELIMIT_ENABLED = False
    LOG_LEVEL = 'CRITICAL'
    DB_PATH = os.getenv('TEST_DB_PATH', os.path.join(base_dir, 'data', 'test.db'))

config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}

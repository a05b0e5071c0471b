# constants.py

# --- User Roles ---
VALID_ROLES = ['administrator', 'editor', 'author', 'subscriber']
ROLE_CAPABILITIES = {
    'administrator': ['manage_options', 'edit_posts', 'read'],
    'editor': ['edit_posts', 'read'],
    'author': ['edit_posts', 'read'],
    'subscriber': ['read'],
}
ROLE_REDIRECTS = {
    'administrator': 'locations.render_page',
}

# --- Security ---
MIN_PASSWORD_LENGTH = 8
NONCE_FIELD = '_nonce'

# --- Locations screen ---
LOCATIONS_CAPABILITY = 'manage_options'
LOCATION_NOTICE_KEY = 'smooth_booking_location_notice_%d'
LOCATION_FORM_STATE_KEY = 'smooth_booking_location_form_%d'
LOCATION_PERMISSION_MESSAGE = 'You do not have permission to manage locations.'

SAVE_LOCATION_ACTION = 'smooth_booking_save_location'
DELETE_LOCATION_ACTION = 'smooth_booking_delete_location'
RESTORE_LOCATION_ACTION = 'smooth_booking_restore_location'

LOCATION_VIEWS = ['active', 'deleted']

# --- Data Formats ---
DB_DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'

# --- JSON API ---
LOCATIONS_API_PREFIX = '/api/smooth-booking/v1'
REST_NONCE_ACTION = 'wp_rest'
REST_NONCE_HEADER = 'X-WP-Nonce'

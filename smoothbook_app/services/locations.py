"""
Location service

Validation and orchestration for location CRUD. Views and CLI commands talk
to this service; it owns the rules, the repository owns the SQL.
"""

import logging
import re
import sqlite3
from urllib.parse import urlparse
from flask import current_app, has_app_context
from markupsafe import Markup
from smoothbook_app.models.location_repository import LocationRepository
from smoothbook_app.services.industries import DEFAULT_INDUSTRY_GROUPS, normalise_industry_groups
from smoothbook_app.utils.timezones import is_valid_timezone, timezone_identifiers

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r'^[A-Za-z0-9._%+\-]+@[A-Za-z0-9\-]+(\.[A-Za-z0-9\-]+)+$')
TRUTHY = ('1', 'true', 'yes', 'on')
MARKUP_RE = re.compile(r'<!--.*?-->|<[^<>]*>', re.DOTALL)

NOT_FOUND_MESSAGE = 'The requested location could not be found.'

# Largest value an SQLite INTEGER column can hold
MAX_ID = 2 ** 63 - 1

class LocationError(Exception):
    """A location operation was rejected; ``message`` is safe to show to users."""

    def __init__(self, code, message):
        super().__init__(message)
        self.code = code
        self.message = message

def not_found_error():
    return LocationError('smooth_booking_location_not_found', NOT_FOUND_MESSAGE)

def absint(value):
    """Non-negative int clamped to MAX_ID; 0 when the value is not a number."""
    try:
        return min(abs(int(str(value).strip())), MAX_ID)
    except (TypeError, ValueError):
        return 0

def _strip_markup(value):
    # striptags() unescapes entities, so literal ampersands are escaped first
    return Markup(value.replace('&', '&amp;')).striptags()

def sanitize_text_field(value):
    """Strip markup and collapse whitespace to a single line."""
    if value is None:
        return ''
    return _strip_markup(str(value))

def sanitize_textarea_field(value):
    """Strip markup but keep line breaks."""
    if value is None:
        return ''
    text = MARKUP_RE.sub('', str(value).replace('\r\n', '\n'))
    return '\n'.join(_strip_markup(line) for line in text.split('\n')).strip()

def sanitize_url(value):
    """Return an http(s) URL or '' when the value cannot be one."""
    value = sanitize_text_field(value).replace(' ', '')
    if not value:
        return ''
    if '://' not in value:
        value = 'http://' + value
    parsed = urlparse(value)
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        return ''
    return value

def to_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUTHY

def _optional(value):
    return value if value.strip() else None

class LocationService:
    def __init__(self, repository=None, industry_groups=None, default_timezone='Europe/Budapest'):
        self.repository = repository or LocationRepository()
        self._industry_groups = industry_groups
        self.default_timezone = default_timezone

    # --- Industries ---

    def get_industry_groups(self):
        groups = self._industry_groups
        if groups is None:
            groups = current_app.config.get('LOCATION_INDUSTRY_GROUPS') if has_app_context() else None
        return normalise_industry_groups(groups or DEFAULT_INDUSTRY_GROUPS)

    def _flat_industry_options(self):
        return [option for group in self.get_industry_groups() for option in group['options']]

    def get_industry_label(self, industry_id):
        if not industry_id:
            return 'Not specified'
        for option in self._flat_industry_options():
            if option['value'] == int(industry_id):
                return option['label']
        return 'Custom industry'

    def get_timezone_options(self):
        return [{'value': zone, 'label': zone} for zone in timezone_identifiers()]

    # --- Queries ---

    def list_locations(self, filters=None):
        filters = filters or {}
        include_deleted = bool(filters.get('include_deleted'))
        only_deleted = bool(filters.get('only_deleted'))
        return self.repository.all(include_deleted, only_deleted)

    def get_location(self, location_id):
        location_id = absint(location_id)
        location = self.repository.find(location_id)
        if location is None:
            raise not_found_error()
        return location

    def get_location_with_deleted(self, location_id):
        location_id = absint(location_id)
        location = self.repository.find_with_deleted(location_id)
        if location is None:
            raise not_found_error()
        return location

    # --- Mutations ---

    def create_location(self, data):
        validated = self.validate_location_data(data)
        try:
            return self.repository.create(validated)
        except sqlite3.Error as e:
            logger.error(f"Failed creating location: {str(e)}")
            raise LocationError(
                'smooth_booking_location_insert_failed',
                'Unable to create location. Please try again.'
            ) from e

    def update_location(self, location_id, data):
        location_id = absint(location_id)
        existing = self.repository.find_with_deleted(location_id)
        if existing is None:
            raise not_found_error()
        if existing.is_deleted:
            raise LocationError(
                'smooth_booking_location_deleted',
                'The location has been deleted and must be restored before editing.'
            )

        validated = self.validate_location_data(data)
        try:
            return self.repository.update(location_id, validated)
        except sqlite3.Error as e:
            logger.error(f"Failed updating location #{location_id}: {str(e)}")
            raise LocationError(
                'smooth_booking_location_update_failed',
                'Unable to update location. Please try again.'
            ) from e

    def delete_location(self, location_id):
        location_id = absint(location_id)
        if self.repository.find(location_id) is None:
            raise not_found_error()
        try:
            deleted = self.repository.soft_delete(location_id)
        except sqlite3.Error as e:
            logger.error(f"Failed deleting location #{location_id}: {str(e)}")
            deleted = False
        if not deleted:
            raise LocationError(
                'smooth_booking_location_delete_failed',
                'Unable to delete location. Please try again.'
            )
        return True

    def restore_location(self, location_id):
        location_id = absint(location_id)
        existing = self.repository.find_with_deleted(location_id)
        if existing is None:
            raise not_found_error()
        if not existing.is_deleted:
            raise LocationError('smooth_booking_location_not_deleted', 'The location is already active.')
        try:
            restored = self.repository.restore(location_id)
        except sqlite3.Error as e:
            logger.error(f"Failed restoring location #{location_id}: {str(e)}")
            restored = False
        if not restored:
            raise LocationError(
                'smooth_booking_location_restore_failed',
                'Unable to restore location. Please try again.'
            )
        return self.repository.find(location_id) or existing

    # --- Validation ---

    def validate_location_data(self, data):
        """Normalise a submitted payload or raise LocationError.

        Returns the mapping the repository persists: required ``name``,
        optional text fields as None when blank, ints for ids and flags.
        """
        name = sanitize_text_field(data.get('name'))
        if not name:
            raise LocationError('smooth_booking_location_invalid_name', 'Location name is required.')

        base_email = sanitize_text_field(data.get('base_email')).replace(' ', '')
        if base_email and not EMAIL_RE.match(base_email):
            raise LocationError(
                'smooth_booking_location_invalid_email',
                'Please provide a valid base email address.'
            )

        industry_id = absint(data.get('industry_id', 0))
        allowed = {0} | {option['value'] for option in self._flat_industry_options()}
        if industry_id not in allowed:
            raise LocationError(
                'smooth_booking_location_invalid_industry',
                'Please choose a valid industry option.'
            )

        timezone = sanitize_text_field(data.get('timezone')) or self.default_timezone
        if not is_valid_timezone(timezone):
            raise LocationError('smooth_booking_location_invalid_timezone', 'Please select a valid time zone.')

        return {
            'name': name,
            'profile_image_id': absint(data.get('profile_image_id', 0)),
            'address': _optional(sanitize_textarea_field(data.get('address'))),
            'phone': _optional(sanitize_text_field(data.get('phone'))),
            'base_email': _optional(base_email),
            'website': _optional(sanitize_url(data.get('website'))),
            'timezone': timezone,
            'industry_id': industry_id,
            'is_event_location': 1 if to_bool(data.get('is_event_location', False)) else 0,
            'company_name': _optional(sanitize_text_field(data.get('company_name'))),
            'company_address': _optional(sanitize_textarea_field(data.get('company_address'))),
            'company_phone': _optional(sanitize_text_field(data.get('company_phone'))),
        }

def get_location_service():
    """The service instance attached to the running app."""
    return current_app.extensions['smoothbook.location_service']

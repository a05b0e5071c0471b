from flask import Blueprint, jsonify, request
from flask_login import current_user
from functools import wraps
from smoothbook_app.extensions import limiter, user_key_func
from smoothbook_app.services.locations import LocationError, get_location_service, to_bool
from smoothbook_app.utils.audit_logging import log_audit_action, current_username
from smoothbook_app.utils.constants import (
    LOCATIONS_CAPABILITY, LOCATIONS_API_PREFIX, REST_NONCE_ACTION, REST_NONCE_HEADER,
)
from smoothbook_app.utils.nonces import verify_nonce
import logging

logger = logging.getLogger(__name__)
api_bp = Blueprint('locations_api', __name__, url_prefix=LOCATIONS_API_PREFIX)

API_RATE_LIMIT = "300/hour"

# Keys accepted in a create/update body
PAYLOAD_KEYS = (
    'name', 'profile_image_id', 'address', 'phone', 'base_email', 'website', 'timezone',
    'industry_id', 'is_event_location', 'company_name', 'company_address', 'company_phone',
)

def api_error(code, message, status):
    return jsonify({"code": code, "message": message}), status

def rest_permission(f):
    """Require a session, the locations capability and a REST nonce header."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            logger.warning(f"Anonymous API request to {request.path}")
            return api_error('rest_not_logged_in', 'You are not currently logged in.', 401)

        if not verify_nonce(REST_NONCE_ACTION, request.headers.get(REST_NONCE_HEADER)):
            logger.warning(f"{current_user.username} sent {request.method} {request.path} without a valid nonce")
            log_audit_action(current_user.username, 'nonce_failed', request.path, f"Invalid nonce for {REST_NONCE_ACTION}")
            return api_error('rest_cookie_invalid_nonce', 'Cookie check failed', 403)

        if not current_user.can(LOCATIONS_CAPABILITY):
            logger.warning(f"{current_user.username} ({current_user.role}) denied API access to {request.path}")
            log_audit_action(current_user.username, 'unauthorized_access', request.path, f'Missing capability {LOCATIONS_CAPABILITY}')
            return api_error('rest_forbidden', 'Sorry, you are not allowed to do that.', 403)

        return f(*args, **kwargs)
    return decorated_function

def request_payload(existing=None):
    """Body fields over ``existing`` values; JSON bodies and form posts both work."""
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = request.form
    payload = {key: getattr(existing, key) for key in PAYLOAD_KEYS} if existing else {}
    payload.update({key: body[key] for key in PAYLOAD_KEYS if key in body})
    return payload

@api_bp.route('/locations', methods=['GET'])
@rest_permission
@limiter.limit(API_RATE_LIMIT, key_func=user_key_func)
def list_locations():
    include_deleted = to_bool(request.args.get('include_deleted', ''))
    only_deleted = to_bool(request.args.get('only_deleted', ''))
    locations = get_location_service().list_locations({
        'include_deleted': include_deleted or only_deleted,
        'only_deleted': only_deleted,
    })
    logger.debug(f"User {current_username()} listed {len(locations)} locations via API")
    return jsonify({"data": [location.to_dict() for location in locations]})

@api_bp.route('/locations', methods=['POST'])
@rest_permission
@limiter.limit(API_RATE_LIMIT, key_func=user_key_func)
def create_location():
    username = current_username()
    try:
        location = get_location_service().create_location(request_payload())
    except LocationError as e:
        logger.warning(f"User {username} failed to create location via API: {e.code}")
        return api_error(e.code, e.message, 400)

    logger.info(f"User {username} created location #{location.id} via API")
    log_audit_action(username, 'create_location', 'locations', f"Created location: {location.name} (ID: {location.id})")
    return jsonify(location.to_dict()), 201

@api_bp.route('/locations/<int:location_id>', methods=['GET'])
@rest_permission
@limiter.limit(API_RATE_LIMIT, key_func=user_key_func)
def get_location(location_id):
    try:
        location = get_location_service().get_location_with_deleted(location_id)
    except LocationError as e:
        return api_error(e.code, e.message, 404)
    return jsonify(location.to_dict())

@api_bp.route('/locations/<int:location_id>', methods=['PUT', 'PATCH'])
@rest_permission
@limiter.limit(API_RATE_LIMIT, key_func=user_key_func)
def update_location(location_id):
    username = current_username()
    service = get_location_service()
    try:
        existing = service.get_location_with_deleted(location_id)
        location = service.update_location(location_id, request_payload(existing))
    except LocationError as e:
        logger.warning(f"User {username} failed to update location #{location_id} via API: {e.code}")
        return api_error(e.code, e.message, 400)

    logger.info(f"User {username} updated location #{location_id} via API")
    log_audit_action(username, 'update_location', 'locations', f"Updated location: {location.name} (ID: {location.id})")
    return jsonify(location.to_dict())

@api_bp.route('/locations/<int:location_id>', methods=['DELETE'])
@rest_permission
@limiter.limit(API_RATE_LIMIT, key_func=user_key_func)
def delete_location(location_id):
    username = current_username()
    try:
        get_location_service().delete_location(location_id)
    except LocationError as e:
        logger.warning(f"User {username} failed to delete location #{location_id} via API: {e.code}")
        return api_error(e.code, e.message, 400)

    logger.info(f"User {username} deleted location #{location_id} via API")
    log_audit_action(username, 'delete_location', 'locations', f"Deleted location ID {location_id}")
    return jsonify({"deleted": True})

@api_bp.route('/locations/<int:location_id>/restore', methods=['POST'])
@rest_permission
@limiter.limit(API_RATE_LIMIT, key_func=user_key_func)
def restore_location(location_id):
    username = current_username()
    try:
        location = get_location_service().restore_location(location_id)
    except LocationError as e:
        logger.warning(f"User {username} failed to restore location #{location_id} via API: {e.code}")
        return api_error(e.code, e.message, 400)

    logger.info(f"User {username} restored location #{location_id} via API")
    log_audit_action(username, 'restore_location', 'locations', f"Restored location: {location.name} (ID: {location_id})")
    return jsonify(location.to_dict())

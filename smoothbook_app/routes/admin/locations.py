from flask import Blueprint, render_template, request, redirect, url_for, get_template_attribute, current_app
from flask_login import current_user
from smoothbook_app.routes.admin.admin_post import admin_post_action
from smoothbook_app.routes.common.auth import capability_required, check_admin_referer
from smoothbook_app.services.locations import LocationError, absint, get_location_service
from smoothbook_app.utils.assets import enqueue_style, enqueue_script, localize_script
from smoothbook_app.utils.audit_logging import log_audit_action
from smoothbook_app.utils.constants import (
    LOCATIONS_CAPABILITY, LOCATION_PERMISSION_MESSAGE, LOCATION_NOTICE_KEY, LOCATION_FORM_STATE_KEY,
    SAVE_LOCATION_ACTION, DELETE_LOCATION_ACTION, RESTORE_LOCATION_ACTION, LOCATION_VIEWS, REST_NONCE_ACTION,
)
from smoothbook_app.utils.nonces import create_nonce
from smoothbook_app.utils.notices import NoticeStore, FormStateStore
from smoothbook_app.utils.settings import get_site_timezone
from smoothbook_app.utils.timezones import timezone_choices
import logging
import re

logger = logging.getLogger(__name__)

locations_bp = Blueprint('locations', __name__)

notices = NoticeStore(LOCATION_NOTICE_KEY)
form_states = FormStateStore(LOCATION_FORM_STATE_KEY)

# POST field -> service payload key
FORM_FIELDS = {
    'location_name': 'name',
    'location_profile_image_id': 'profile_image_id',
    'location_address': 'address',
    'location_phone': 'phone',
    'location_email': 'base_email',
    'location_website': 'website',
    'location_timezone': 'timezone',
    'location_industry': 'industry_id',
    'location_is_event': 'is_event_location',
    'location_company_name': 'company_name',
    'location_company_address': 'company_address',
    'location_company_phone': 'company_phone',
}

def sanitize_key(value):
    return re.sub(r'[^a-z0-9_\-]', '', (value or '').lower())

def get_base_page(**args):
    return url_for('locations.render_page', **args)

def get_view_link(view):
    if view == 'deleted':
        return get_base_page(view='deleted')
    return get_base_page()

def get_edit_link(location_id):
    return get_base_page(action='edit', location_id=location_id)

def build_payload(form):
    payload = {key: form.get(field, '') for field, key in FORM_FIELDS.items()}
    payload['profile_image_id'] = form.get('location_profile_image_id', 0)
    payload['industry_id'] = form.get('location_industry', 0)
    payload['is_event_location'] = form.get('location_is_event', False)
    return payload

def form_values(location, default_timezone):
    """Field values for the add/edit form."""
    if location is None:
        return {
            'name': '', 'profile_image_id': 0, 'address': '', 'phone': '', 'base_email': '',
            'website': '', 'timezone': default_timezone, 'industry_id': 0, 'is_event_location': False,
            'company_name': '', 'company_address': '', 'company_phone': '',
        }
    values = {key: getattr(location, key) or '' for key in FORM_FIELDS.values()}
    values['profile_image_id'] = location.profile_image_id or 0
    values['timezone'] = location.timezone
    values['industry_id'] = location.industry_id
    values['is_event_location'] = location.is_event_location
    return values

def restore_submitted_values(values, submitted):
    """Overlay a rejected submission onto the form values."""
    for key in FORM_FIELDS.values():
        if key in submitted:
            values[key] = submitted[key]
    values['profile_image_id'] = absint(values['profile_image_id'])
    values['industry_id'] = absint(values['industry_id'])
    values['is_event_location'] = str(values['is_event_location']).lower() in ('1', 'true', 'yes', 'on')
    return values

def enqueue_assets(endpoint):
    """Queue the styles and scripts of the locations screen."""
    if endpoint != 'locations.render_page':
        return

    placeholder = get_template_attribute('admin/_location_macros.html', 'location_avatar')(None)

    enqueue_style('smooth-booking-admin-shared', 'css/admin-shared.css')
    enqueue_style('smooth-booking-admin-locations', 'css/admin-locations.css', deps=['smooth-booking-admin-shared'])
    enqueue_script('smooth-booking-admin-locations', 'js/admin-locations.js')
    localize_script('smooth-booking-admin-locations', 'SmoothBookingLocations', {
        'confirmDelete': 'Are you sure you want to delete this location?',
        'chooseImage': 'Select location image',
        'useImage': 'Use image',
        'removeImage': 'Remove image',
        'placeholderHtml': str(placeholder),
        'imageUrl': current_app.config['MEDIA_URL_TEMPLATE'],
        'restUrl': url_for('locations_api.list_locations'),
        'restNonce': create_nonce(REST_NONCE_ACTION),
    })

@locations_bp.route('/admin/locations', methods=['GET'], strict_slashes=False)
@capability_required(LOCATIONS_CAPABILITY, LOCATION_PERMISSION_MESSAGE)
def render_page():
    username = current_user.username
    service = get_location_service()
    notice = notices.consume()
    submitted = form_states.consume()

    action = sanitize_key(request.args.get('action', ''))
    location_id = absint(request.args.get('location_id', 0))
    view = sanitize_key(request.args.get('view', ''))
    if view not in LOCATION_VIEWS:
        view = 'active'
    show_deleted = view == 'deleted'
    logger.debug(f"User {username} viewing locations: action={action!r}, location_id={location_id}, view={view}")

    editing_location = None
    editing_error = None

    if action == 'edit' and location_id > 0:
        try:
            location = service.get_location_with_deleted(location_id)
        except LocationError as e:
            editing_error = e.message
        else:
            if location.is_deleted:
                editing_error = 'Restore the location before editing.'
            else:
                editing_location = location

    locations = service.list_locations({
        'include_deleted': show_deleted,
        'only_deleted': show_deleted,
    })

    form = form_values(editing_location, get_site_timezone(service.default_timezone))
    submitted_id = absint(submitted.get('location_id', 0)) if submitted else 0
    if submitted and submitted_id == (editing_location.id if editing_location else 0):
        form = restore_submitted_values(form, submitted)

    should_open_form = editing_location is not None or action == 'add'

    enqueue_assets(request.endpoint)
    log_audit_action(username, 'view', 'locations', f"Viewed {len(locations)} {view} locations")

    return render_template(
        'admin/locations.html',
        notice=notice,
        locations=locations,
        editing_location=editing_location,
        editing_error=editing_error,
        show_deleted=show_deleted,
        should_open_form=should_open_form,
        form=form,
        industry_groups=service.get_industry_groups(),
        industry_label=service.get_industry_label,
        timezone_groups=timezone_choices(form['timezone']),
        base_page=get_base_page(),
        active_view_link=get_view_link('active'),
        deleted_view_link=get_view_link('deleted'),
        edit_link=get_edit_link,
        save_action=SAVE_LOCATION_ACTION,
        delete_action=DELETE_LOCATION_ACTION,
        restore_action=RESTORE_LOCATION_ACTION,
    )

@admin_post_action(SAVE_LOCATION_ACTION)
@capability_required(LOCATIONS_CAPABILITY, LOCATION_PERMISSION_MESSAGE)
def handle_save():
    check_admin_referer(SAVE_LOCATION_ACTION)
    username = current_user.username
    service = get_location_service()

    location_id = absint(request.form.get('location_id', 0))
    payload = build_payload(request.form)

    try:
        if location_id > 0:
            location = service.update_location(location_id, payload)
        else:
            location = service.create_location(payload)
    except LocationError as e:
        logger.warning(f"User {username} failed to save location #{location_id}: {e.code}")
        log_audit_action(username, 'save_location_failed', 'locations', f"{e.code}: {e.message}")
        notices.add('error', e.message)
        form_states.save(dict(payload, location_id=location_id))
        if location_id > 0:
            return redirect(get_edit_link(location_id))
        return redirect(get_base_page(action='add'))

    if location_id > 0:
        message = 'Location updated.'
        log_audit_action(username, 'update_location', 'locations', f"Updated location: {location.name} (ID: {location.id})")
    else:
        message = 'Location created.'
        log_audit_action(username, 'create_location', 'locations', f"Created location: {location.name} (ID: {location.id})")
    logger.info(f"User {username} saved location #{location.id}")
    notices.add('success', message)
    return redirect(get_base_page())

@admin_post_action(DELETE_LOCATION_ACTION)
@capability_required(LOCATIONS_CAPABILITY, LOCATION_PERMISSION_MESSAGE)
def handle_delete():
    check_admin_referer(DELETE_LOCATION_ACTION)
    username = current_user.username

    location_id = absint(request.form.get('location_id', 0))
    if location_id <= 0:
        notices.add('error', 'Invalid location.')
        return redirect(get_base_page())

    try:
        get_location_service().delete_location(location_id)
    except LocationError as e:
        logger.warning(f"User {username} failed to delete location #{location_id}: {e.code}")
        log_audit_action(username, 'delete_location_failed', 'locations', f"{e.code}: {e.message}")
        notices.add('error', e.message)
    else:
        logger.info(f"User {username} deleted location #{location_id}")
        log_audit_action(username, 'delete_location', 'locations', f"Deleted location ID {location_id}")
        notices.add('success', 'Location deleted.')

    return redirect(get_base_page())

@admin_post_action(RESTORE_LOCATION_ACTION)
@capability_required(LOCATIONS_CAPABILITY, LOCATION_PERMISSION_MESSAGE)
def handle_restore():
    check_admin_referer(RESTORE_LOCATION_ACTION)
    username = current_user.username

    location_id = absint(request.form.get('location_id', 0))
    if location_id <= 0:
        notices.add('error', 'Invalid location.')
        return redirect(get_view_link('deleted'))

    try:
        location = get_location_service().restore_location(location_id)
    except LocationError as e:
        logger.warning(f"User {username} failed to restore location #{location_id}: {e.code}")
        log_audit_action(username, 'restore_location_failed', 'locations', f"{e.code}: {e.message}")
        notices.add('error', e.message)
    else:
        logger.info(f"User {username} restored location #{location_id}")
        log_audit_action(username, 'restore_location', 'locations', f"Restored location: {location.name} (ID: {location_id})")
        notices.add('success', 'Location restored.')

    return redirect(get_base_page())

"""
Locations admin screen: rendering, admin-post handlers and notices.
"""

from urllib.parse import urlparse, parse_qs

import pytest

from smoothbook_app.services.locations import get_location_service
from smoothbook_app.utils.audit_logging import get_audit_entries
from smoothbook_app.utils.constants import (
    LOCATION_NOTICE_KEY, SAVE_LOCATION_ACTION, DELETE_LOCATION_ACTION, RESTORE_LOCATION_ACTION,
)
from smoothbook_app.utils.notices import NoticeStore

PAGE = '/admin/locations'
ADMIN_POST = '/admin/admin-post'


def page(client, **args):
    response = client.get(PAGE, query_string=args)
    assert response.status_code == 200
    return response.get_data(as_text=True)


def redirect_target(response):
    assert response.status_code == 302
    target = urlparse(response.location)
    return target.path, parse_qs(target.query)


def save(client, nonce, **fields):
    data = {'action': SAVE_LOCATION_ACTION, '_nonce': nonce(SAVE_LOCATION_ACTION)}
    data.update(fields)
    return client.post(ADMIN_POST, data=data)


def location_names(app, include_deleted=False, only_deleted=False):
    with app.app_context():
        locations = get_location_service().list_locations({
            'include_deleted': include_deleted,
            'only_deleted': only_deleted,
        })
        return [location.name for location in locations]


# --- Access control ---

def test_anonymous_user_is_sent_to_login(client):
    response = client.get(PAGE)
    path, query = redirect_target(response)
    assert path == '/login'
    assert 'next' in query


def test_user_without_capability_is_denied(reader_client):
    response = reader_client.get(PAGE)
    assert response.status_code == 403
    assert 'You do not have permission to manage locations.' in response.get_data(as_text=True)


@pytest.mark.parametrize('action, starts_deleted', [
    (SAVE_LOCATION_ACTION, False),
    (DELETE_LOCATION_ACTION, False),
    (RESTORE_LOCATION_ACTION, True),
])
def test_denied_post_changes_nothing(app, reader_client, nonce, make_location, action, starts_deleted):
    location_id = make_location(name='Riverside')
    with app.app_context():
        service = get_location_service()
        if starts_deleted:
            service.delete_location(location_id)
        before = service.get_location_with_deleted(location_id)

    response = reader_client.post(ADMIN_POST, data={
        'action': action,
        '_nonce': nonce(action, username='reader'),
        'location_id': str(location_id),
        'location_name': 'Sneaky',
    })
    assert response.status_code == 403
    assert 'You do not have permission to manage locations.' in response.get_data(as_text=True)

    with app.app_context():
        assert get_location_service().get_location_with_deleted(location_id) == before
    assert location_names(app, include_deleted=True) == ['Riverside']


def test_invalid_nonce_is_rejected(app, admin_client):
    response = admin_client.post(ADMIN_POST, data={
        'action': SAVE_LOCATION_ACTION,
        '_nonce': 'not-a-token',
        'location_name': 'Downtown studio',
    })
    assert response.status_code == 403
    assert 'The link you followed has expired.' in response.get_data(as_text=True)
    assert location_names(app) == []


def test_nonce_for_another_action_is_rejected(app, admin_client, nonce):
    response = admin_client.post(ADMIN_POST, data={
        'action': SAVE_LOCATION_ACTION,
        '_nonce': nonce(DELETE_LOCATION_ACTION),
        'location_name': 'Downtown studio',
    })
    assert response.status_code == 403
    assert location_names(app) == []


def test_unknown_action_is_a_bad_request(admin_client):
    response = admin_client.post(ADMIN_POST, data={'action': 'smooth_booking_unknown'})
    assert response.status_code == 400
    assert 'Unknown admin action.' in response.get_data(as_text=True)


def test_anonymous_post_requires_login(client):
    response = client.post(ADMIN_POST, data={'action': SAVE_LOCATION_ACTION})
    assert response.status_code == 302
    assert urlparse(response.location).path == '/login'


# --- Rendering ---

def test_empty_list(admin_client):
    html = page(admin_client)
    assert 'No locations have been added yet.' in html
    assert 'Show deleted locations' in html
    assert 'smooth-booking-location-form-drawer is-open' not in html


def test_screen_assets_are_enqueued(admin_client):
    html = page(admin_client)
    assert 'css/admin-shared.css' in html
    assert 'css/admin-locations.css' in html
    assert 'js/admin-locations.js' in html
    assert 'var SmoothBookingLocations = ' in html
    assert 'Are you sure you want to delete this location?' in html
    assert '"useImage": "Use image"' in html
    assert '"removeImage": "Remove image"' in html
    assert '"imageUrl": "/media/{id}/thumbnail"' in html


def test_table_row(admin_client, make_location):
    make_location(
        name='Riverside', address='Fő utca 1', industry_id=41, is_event_location=True,
        company_name='Riverside Kft.', website='https://riverside.example',
    )
    html = page(admin_client)
    assert 'Riverside' in html
    assert 'Fő utca 1' in html
    assert '<td>Services</td>' in html
    assert '<td>Yes</td>' in html
    assert '<strong>Riverside Kft.</strong>' in html
    assert 'href="https://riverside.example"' in html
    assert 'No locations have been added yet.' not in html


def test_add_action_opens_create_form(admin_client):
    html = page(admin_client, action='add')
    assert 'smooth-booking-location-form-drawer is-open' in html
    assert 'Add new location' in html
    assert 'Create location' in html


def test_edit_form_preselects_industry_and_timezone(admin_client, make_location):
    location_id = make_location(name='Campus', industry_id=41, timezone='Europe/Vienna')
    html = page(admin_client, action='edit', location_id=location_id)
    assert 'Edit location' in html
    assert 'Update location' in html
    assert f'name="location_id" value="{location_id}"' in html
    assert '<option value="41" selected="selected">Services</option>' in html
    assert '<option value="0">Select industry</option>' in html
    assert '<option value="Europe/Vienna" selected="selected">Vienna</option>' in html


def test_create_form_defaults_to_site_timezone(admin_client):
    html = page(admin_client, action='add')
    assert '<option value="Europe/Budapest" selected="selected">Budapest</option>' in html
    assert '<option value="0" selected="selected">Select industry</option>' in html


def test_editing_missing_location_shows_error(admin_client):
    html = page(admin_client, action='edit', location_id=999)
    assert 'The requested location could not be found.' in html
    assert 'Add new location' in html


def test_editing_deleted_location_shows_error(app, admin_client, make_location):
    location_id = make_location(name='Closed branch')
    with app.app_context():
        get_location_service().delete_location(location_id)
    html = page(admin_client, action='edit', location_id=location_id)
    assert 'Restore the location before editing.' in html
    assert f'name="location_id" value="{location_id}"' not in html


# --- Save ---

def test_create_shows_notice_exactly_once(app, admin_client, nonce):
    response = save(
        admin_client, nonce,
        location_name='Downtown studio', location_industry='41', location_timezone='Europe/Budapest',
    )
    path, query = redirect_target(response)
    assert path == PAGE
    assert query == {}

    html = page(admin_client)
    assert html.count('Location created.') == 1
    assert 'notice notice-success is-dismissible' in html
    assert 'Downtown studio' in html

    assert 'Location created.' not in page(admin_client)
    assert location_names(app) == ['Downtown studio']


def test_create_with_empty_name_keeps_create_form(app, admin_client, nonce):
    response = save(admin_client, nonce, location_name='   ', location_address='Kossuth tér 1')
    path, query = redirect_target(response)
    assert path == PAGE
    assert query == {'action': ['add']}

    html = page(admin_client, action='add')
    assert 'Location name is required.' in html
    assert 'notice notice-error is-dismissible' in html
    assert 'smooth-booking-location-form-drawer is-open' in html
    assert 'Kossuth tér 1</textarea>' in html
    assert location_names(app) == []


def test_update_with_empty_name_keeps_edit_context(app, admin_client, nonce, make_location):
    location_id = make_location(name='Riverside', address='Old address')
    response = save(
        admin_client, nonce,
        location_id=str(location_id), location_name='', location_address='New address',
    )
    path, query = redirect_target(response)
    assert path == PAGE
    assert query == {'action': ['edit'], 'location_id': [str(location_id)]}

    html = page(admin_client, action='edit', location_id=location_id)
    assert 'Location name is required.' in html
    assert 'Edit location' in html
    assert 'New address</textarea>' in html
    assert location_names(app) == ['Riverside']


def test_update_shows_notice(app, admin_client, nonce, make_location):
    location_id = make_location(name='Riverside')
    response = save(
        admin_client, nonce,
        location_id=str(location_id), location_name='Riverside West', location_is_event='1',
    )
    assert redirect_target(response)[0] == PAGE
    assert 'Location updated.' in page(admin_client)
    with app.app_context():
        location = get_location_service().get_location(location_id)
    assert location.name == 'Riverside West'
    assert location.is_event_location is True


def test_save_is_audited(app, admin_client, nonce):
    save(admin_client, nonce, location_name='Audited')
    with app.app_context():
        actions = [row['action'] for row in get_audit_entries('locations')]
    assert 'create_location' in actions


# --- Delete / restore ---

def test_deleted_location_only_in_deleted_view(app, admin_client, nonce, make_location):
    make_location(name='Alpha')
    beta = make_location(name='Beta')

    response = admin_client.post(ADMIN_POST, data={
        'action': DELETE_LOCATION_ACTION,
        '_nonce': nonce(DELETE_LOCATION_ACTION),
        'location_id': str(beta),
    })
    assert redirect_target(response)[0] == PAGE

    active = page(admin_client)
    assert 'Location deleted.' in active
    assert 'Alpha' in active
    assert 'Beta' not in active

    deleted = page(admin_client, view='deleted')
    assert 'Deleted locations can be restored from this view.' in deleted
    assert 'Back to active locations' in deleted
    assert 'Beta' in deleted
    assert 'Alpha' not in deleted
    assert f'value="{RESTORE_LOCATION_ACTION}"' in deleted

    response = admin_client.post(ADMIN_POST, data={
        'action': RESTORE_LOCATION_ACTION,
        '_nonce': nonce(RESTORE_LOCATION_ACTION),
        'location_id': str(beta),
    })
    assert redirect_target(response)[0] == PAGE

    active = page(admin_client)
    assert 'Location restored.' in active
    assert 'Beta' in active
    assert location_names(app, only_deleted=True) == []


def test_delete_invalid_location(admin_client, nonce):
    response = admin_client.post(ADMIN_POST, data={
        'action': DELETE_LOCATION_ACTION,
        '_nonce': nonce(DELETE_LOCATION_ACTION),
        'location_id': '0',
    })
    assert redirect_target(response) == (PAGE, {})
    assert 'Invalid location.' in page(admin_client)


def test_delete_missing_location(admin_client, nonce):
    admin_client.post(ADMIN_POST, data={
        'action': DELETE_LOCATION_ACTION,
        '_nonce': nonce(DELETE_LOCATION_ACTION),
        'location_id': '999',
    })
    assert 'The requested location could not be found.' in page(admin_client)


def test_restore_invalid_location_returns_to_deleted_view(admin_client, nonce):
    response = admin_client.post(ADMIN_POST, data={
        'action': RESTORE_LOCATION_ACTION,
        '_nonce': nonce(RESTORE_LOCATION_ACTION),
        'location_id': 'abc',
    })
    assert redirect_target(response) == (PAGE, {'view': ['deleted']})
    assert 'Invalid location.' in page(admin_client, view='deleted')


def test_restore_active_location_fails(admin_client, nonce, make_location):
    location_id = make_location(name='Alpha')
    admin_client.post(ADMIN_POST, data={
        'action': RESTORE_LOCATION_ACTION,
        '_nonce': nonce(RESTORE_LOCATION_ACTION),
        'location_id': str(location_id),
    })
    assert 'The location is already active.' in page(admin_client)


# --- Notices ---

def test_notice_is_shown_on_next_render_only(app, admin_client):
    with app.app_context():
        NoticeStore(LOCATION_NOTICE_KEY).add('warning', 'Heads up', user_id=1)
    first = page(admin_client)
    assert 'notice notice-warning is-dismissible' in first
    assert 'Heads up' in first
    assert 'Heads up' not in page(admin_client)


def test_notice_belongs_to_its_user(app, admin_client):
    with app.app_context():
        NoticeStore(LOCATION_NOTICE_KEY).add('info', 'For the reader', user_id=2)
    assert 'For the reader' not in page(admin_client)


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'


# --- Out-of-range ids ---

HUGE_ID = '99999999999999999999'


def test_edit_with_huge_id_reports_missing_location(admin_client):
    html = page(admin_client, action='edit', location_id=HUGE_ID)
    assert 'The requested location could not be found.' in html


@pytest.mark.parametrize('action', [DELETE_LOCATION_ACTION, RESTORE_LOCATION_ACTION])
def test_huge_id_on_delete_and_restore_is_a_notice(admin_client, nonce, action):
    response = admin_client.post(ADMIN_POST, data={
        'action': action,
        '_nonce': nonce(action),
        'location_id': HUGE_ID,
    })
    assert redirect_target(response)[0] == PAGE
    assert 'The requested location could not be found.' in page(admin_client)


def test_update_with_huge_id_is_a_notice(app, admin_client, nonce):
    response = save(admin_client, nonce, location_id=HUGE_ID, location_name='Nowhere')
    path, query = redirect_target(response)
    assert query['action'] == ['edit']
    html = page(admin_client, action='edit', location_id=query['location_id'][0])
    assert 'The requested location could not be found.' in html
    assert location_names(app, include_deleted=True) == []


def test_huge_image_id_is_stored_clamped(app, admin_client, nonce):
    response = save(admin_client, nonce, location_name='Gallery', location_profile_image_id=HUGE_ID)
    assert redirect_target(response) == (PAGE, {})
    with app.app_context():
        location = get_location_service().list_locations()[0]
    assert location.profile_image_id == 2 ** 63 - 1

"""
Command-line management for locations and users.

Registered on the Flask CLI, e.g.::

    flask --app smoothbook_app locations list --include-deleted
    flask --app smoothbook_app locations create --name "Main office" --industry 41
    flask --app smoothbook_app create-user admin s3cretpass --role administrator
"""
import logging
import sqlite3
import click
from flask.cli import AppGroup, with_appcontext
from smoothbook_app.models.User import User
from smoothbook_app.services.locations import LocationError, get_location_service
from smoothbook_app.utils.audit_logging import log_audit_action
from smoothbook_app.utils.constants import VALID_ROLES, MIN_PASSWORD_LENGTH
from smoothbook_app.utils.transients import purge_expired_transients

logger = logging.getLogger(__name__)

CLI_ACTOR = 'cli'

locations_cli = AppGroup('locations', help='Manage booking locations.')

# CLI option -> service payload key
PAYLOAD_OPTIONS = {
    'name': 'name',
    'address': 'address',
    'phone': 'phone',
    'base_email': 'base_email',
    'website': 'website',
    'timezone': 'timezone',
    'industry': 'industry_id',
    'is_event': 'is_event_location',
    'profile_image_id': 'profile_image_id',
    'company_name': 'company_name',
    'company_address': 'company_address',
    'company_phone': 'company_phone',
}

def location_options(f):
    """Options shared by ``create`` and ``update``."""
    options = [
        click.option('--address'),
        click.option('--phone'),
        click.option('--base-email'),
        click.option('--website'),
        click.option('--timezone'),
        click.option('--industry', type=int, help='Industry identifier.'),
        click.option('--is-event', type=click.Choice(['yes', 'no']), help='Whether the location is used for events.'),
        click.option('--profile-image-id', type=int),
        click.option('--company-name'),
        click.option('--company-address'),
        click.option('--company-phone'),
    ]
    for option in reversed(options):
        f = option(f)
    return f

def prepare_payload(options, fallback=None):
    """Merge explicitly given options over an existing location's values."""
    payload = fallback.to_dict() if fallback else {}
    payload = {key: payload.get(key) for key in PAYLOAD_OPTIONS.values()}
    for option, key in PAYLOAD_OPTIONS.items():
        value = options.get(option)
        if value is None:
            continue
        if option == 'is_event':
            value = value == 'yes'
        payload[key] = value
    return payload

@locations_cli.command('list')
@click.option('--include-deleted', is_flag=True, help='Include soft-deleted locations.')
@click.option('--only-deleted', is_flag=True, help='Show only soft-deleted locations.')
def list_command(include_deleted, only_deleted):
    """List locations."""
    locations = get_location_service().list_locations({
        'include_deleted': include_deleted or only_deleted,
        'only_deleted': only_deleted,
    })
    if not locations:
        click.echo('No locations found.')
        return
    for location in locations:
        label = 'event' if location.is_event_location else 'standard'
        suffix = ' [deleted]' if location.is_deleted else ''
        click.echo(f"#{location.id} {location.name} - {location.address or 'n/a'} ({label}){suffix}")

@locations_cli.command('create')
@click.option('--name', required=True, help='Location name.')
@location_options
def create_command(**options):
    """Create a new location."""
    try:
        location = get_location_service().create_location(prepare_payload(options))
    except LocationError as e:
        raise click.ClickException(e.message)
    logger.info(f"Created location #{location.id} from the command line")
    log_audit_action(CLI_ACTOR, 'create_location', 'locations', f"Created location: {location.name} (ID: {location.id})")
    click.echo(f"Success: Location #{location.id} created.")

@locations_cli.command('update')
@click.argument('location_id', type=int)
@click.option('--name', help='Updated name.')
@location_options
def update_command(location_id, **options):
    """Update an existing location; omitted options keep their stored values."""
    service = get_location_service()
    try:
        existing = service.get_location(location_id)
        service.update_location(location_id, prepare_payload(options, existing))
    except LocationError as e:
        raise click.ClickException(e.message)
    log_audit_action(CLI_ACTOR, 'update_location', 'locations', f"Updated location ID {location_id}")
    click.echo(f"Success: Location #{location_id} updated.")

@locations_cli.command('delete')
@click.argument('location_id', type=int)
def delete_command(location_id):
    """Soft delete a location."""
    try:
        get_location_service().delete_location(location_id)
    except LocationError as e:
        raise click.ClickException(e.message)
    log_audit_action(CLI_ACTOR, 'delete_location', 'locations', f"Deleted location ID {location_id}")
    click.echo(f"Success: Location #{location_id} deleted.")

@locations_cli.command('restore')
@click.argument('location_id', type=int)
def restore_command(location_id):
    """Restore a soft-deleted location."""
    try:
        get_location_service().restore_location(location_id)
    except LocationError as e:
        raise click.ClickException(e.message)
    log_audit_action(CLI_ACTOR, 'restore_location', 'locations', f"Restored location ID {location_id}")
    click.echo(f"Success: Location #{location_id} restored.")

@click.command('create-user')
@with_appcontext
@click.argument('username')
@click.argument('password')
@click.option('--role', type=click.Choice(VALID_ROLES), default='administrator', show_default=True)
def create_user_command(username, password, role):
    """Create a login account."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise click.ClickException(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    try:
        User.create(username, password, role)
    except sqlite3.IntegrityError:
        raise click.ClickException(f"User '{username}' already exists.")
    logger.info(f"User '{username}' created with role '{role}'")
    log_audit_action(CLI_ACTOR, 'create_user', 'users', f"Created user {username} ({role})")
    click.echo(f"User '{username}' created with role '{role}'.")

@click.command('purge-transients')
@with_appcontext
def purge_transients_command():
    """Delete expired transients (notices, saved form state)."""
    removed = purge_expired_transients()
    click.echo(f"Removed {removed} expired transient(s).")

def register_commands(app):
    app.cli.add_command(locations_cli)
    app.cli.add_command(create_user_command)
    app.cli.add_command(purge_transients_command)

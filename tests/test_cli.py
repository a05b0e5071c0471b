"""
``flask locations`` and account management commands.
"""

from smoothbook_app.models.User import User
from smoothbook_app.services.locations import get_location_service
from smoothbook_app.utils.audit_logging import get_audit_entries
from smoothbook_app.utils.transients import set_transient, get_transient


def test_locations_lifecycle(app, runner):
    result = runner.invoke(args=['locations', 'create', '--name', 'HQ', '--industry', '41', '--is-event', 'yes'])
    assert result.exit_code == 0, result.output
    assert 'Success: Location #1 created.' in result.output

    result = runner.invoke(args=['locations', 'list'])
    assert result.exit_code == 0
    assert '#1 HQ - n/a (event)' in result.output

    result = runner.invoke(args=['locations', 'delete', '1'])
    assert 'Success: Location #1 deleted.' in result.output
    assert 'No locations found.' in runner.invoke(args=['locations', 'list']).output
    assert '#1 HQ - n/a (event) [deleted]' in runner.invoke(args=['locations', 'list', '--only-deleted']).output

    result = runner.invoke(args=['locations', 'restore', '1'])
    assert 'Success: Location #1 restored.' in result.output
    assert '[deleted]' not in runner.invoke(args=['locations', 'list', '--include-deleted']).output


def test_update_keeps_omitted_fields(app, runner):
    runner.invoke(args=['locations', 'create', '--name', 'HQ', '--address', 'Main street 1', '--industry', '41'])
    result = runner.invoke(args=['locations', 'update', '1', '--phone', '+36 1 234 5678'])
    assert result.exit_code == 0, result.output
    assert 'Success: Location #1 updated.' in result.output

    with app.app_context():
        location = get_location_service().get_location(1)
    assert location.name == 'HQ'
    assert location.address == 'Main street 1'
    assert location.industry_id == 41
    assert location.phone == '+36 1 234 5678'


def test_validation_errors_fail_the_command(runner):
    result = runner.invoke(args=['locations', 'create', '--name', 'HQ', '--base-email', 'nope'])
    assert result.exit_code == 1
    assert 'Please provide a valid base email address.' in result.output


def test_missing_location(runner):
    for command in ('delete', 'restore', 'update'):
        result = runner.invoke(args=['locations', command, '99'])
        assert result.exit_code == 1
        assert 'The requested location could not be found.' in result.output


def test_create_user(app, runner):
    result = runner.invoke(args=['create-user', 'manager', 'managerpass', '--role', 'editor'])
    assert result.exit_code == 0, result.output
    with app.app_context():
        user = User.authenticate('manager', 'managerpass')
    assert user.role == 'editor'
    assert not user.can('manage_options')


def test_create_user_rejects_duplicates_and_short_passwords(runner):
    assert runner.invoke(args=['create-user', 'admin', 'whatever123']).exit_code == 1
    result = runner.invoke(args=['create-user', 'shorty', 'short'])
    assert result.exit_code == 1
    assert 'at least 8 characters' in result.output


def test_purge_transients(app, runner):
    with app.app_context():
        set_transient('old', 'value', -1)
        set_transient('new', 'value', 60)
    result = runner.invoke(args=['purge-transients'])
    assert 'Removed 1 expired transient(s).' in result.output
    with app.app_context():
        assert get_transient('new') == 'value'


def test_cli_changes_are_audited(app, runner):
    runner.invoke(args=['locations', 'create', '--name', 'HQ'])
    runner.invoke(args=['locations', 'delete', '1'])
    with app.app_context():
        entries = get_audit_entries('locations')
    assert [(e['username'], e['action']) for e in entries] == [
        ('cli', 'delete_location'),
        ('cli', 'create_location'),
    ]

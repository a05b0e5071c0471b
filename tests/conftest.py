"""
Pytest configuration and shared fixtures.

Every test gets a fresh app bound to a temporary SQLite database with two
accounts: ``admin`` (administrator) and ``reader`` (subscriber).
"""

import pytest
from flask_login import login_user

from smoothbook_app import create_app
from smoothbook_app.models.User import User
from smoothbook_app.services.locations import get_location_service
from smoothbook_app.utils.nonces import create_nonce

ADMIN = ('admin', 'adminpass1')
READER = ('reader', 'readerpass1')


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', {
        'DB_PATH': str(tmp_path / 'smoothbook.db'),
        'LOG_DIR': str(tmp_path / 'logs'),
    })
    with app.app_context():
        User.create(ADMIN[0], ADMIN[1], 'administrator')
        User.create(READER[0], READER[1], 'subscriber')
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, credentials):
    username, password = credentials
    return client.post('/login', data={'username': username, 'password': password})


@pytest.fixture
def admin_client(client):
    login(client, ADMIN)
    return client


@pytest.fixture
def reader_client(client):
    login(client, READER)
    return client


@pytest.fixture
def nonce(app):
    """Build a nonce for ``action`` as the given user would receive it."""
    def make(action, username=ADMIN[0]):
        with app.test_request_context():
            user = User.authenticate(username, dict([ADMIN, READER])[username])
            login_user(user)
            return create_nonce(action)
    return make


@pytest.fixture
def service(app):
    with app.app_context():
        yield get_location_service()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def make_location(app):
    """Create a location outside of any request; returns its id."""
    def make(**data):
        data.setdefault('name', 'Main office')
        with app.app_context():
            return get_location_service().create_location(data).id
    return make

"""
Pytest fixtures for Cherry POS backend tests.

Provides a fresh in-memory database per test, the Flask test client, seeded
administrator and staff accounts, and bearer-header helpers.
"""

import pytest

from cherry_pos import create_app
from cherry_pos.extensions import db
from cherry_pos.permissions import BAR_STAFF, CASHIER, MANAGER, SUPER_ADMIN, WAITSTAFF
from cherry_pos.services import staff_service
from cherry_pos.services.auth_service import sign_up


PASSWORD = "Passw0rd!"


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'REALTIME_KEEPALIVE_SECONDS': 1,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def super_admin(app):
    return sign_up("admin@cherry.test", PASSWORD, full_name="Ada Admin", role=SUPER_ADMIN)


@pytest.fixture(scope='function')
def manager(app):
    return sign_up("manager@cherry.test", PASSWORD, full_name="Max Manager", role=MANAGER)


@pytest.fixture(scope='function')
def cashier_staff(app):
    return staff_service.create_staff_user("carl", PASSWORD, "Carl Cashier", CASHIER)


@pytest.fixture(scope='function')
def waitstaff(app):
    return staff_service.create_staff_user("wendy", PASSWORD, "Wendy Waiter", WAITSTAFF)


@pytest.fixture(scope='function')
def bar_staff(app):
    return staff_service.create_staff_user("barry", PASSWORD, "Barry Bar", BAR_STAFF)


def admin_token(client, email: str, password: str = PASSWORD) -> str:
    """Log an administrator in and return the access token."""
    response = client.post('/api/auth/login', json={'email': email, 'password': password})
    assert response.status_code == 200, response.get_json()
    return response.get_json()['session']['access_token']


def staff_token(client, username: str, password: str = PASSWORD) -> str:
    """Log a staff member in and return the staff token."""
    response = client.post('/api/auth/staff/login', json={'username': username, 'password': password})
    assert response.status_code == 200, response.get_json()
    return response.get_json()['token']


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, super_admin):
    return auth_headers(admin_token(client, super_admin.email))


@pytest.fixture(scope='function')
def manager_headers(client, manager):
    return auth_headers(admin_token(client, manager.email))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_staff):
    return auth_headers(staff_token(client, cashier_staff.username))


@pytest.fixture(scope='function')
def waitstaff_headers(client, waitstaff):
    return auth_headers(staff_token(client, waitstaff.username))


@pytest.fixture(scope='function')
def bar_staff_headers(client, bar_staff):
    return auth_headers(staff_token(client, bar_staff.username))

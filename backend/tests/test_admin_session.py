"""
Administrator session provider and terminal identity tests.

Most tests drive the real application through httpx.WSGITransport; failure
modes the server cannot produce on demand use httpx.MockTransport.
"""

import json

import httpx
import pytest

from cherry_pos.client import (
    AdminSessionProvider,
    ApiClient,
    ApiError,
    MemoryStorage,
    StaffSessionProvider,
    STATE_ANONYMOUS,
    STATE_AUTHENTICATED,
    STATE_LOADING,
    TerminalSession,
)
from cherry_pos.client.admin_session import ADMIN_TOKENS_KEY

from conftest import PASSWORD


@pytest.fixture
def api(app):
    client = ApiClient('http://pos.test', transport=httpx.WSGITransport(app=app))
    yield client
    client.close()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def provider(api, storage):
    return AdminSessionProvider(api, storage)


class TestAdminSession:
    def test_starts_loading_then_anonymous_without_tokens(self, provider):
        assert provider.state == STATE_LOADING
        provider.initialize()
        assert provider.state == STATE_ANONYMOUS
        assert provider.role is None

    def test_sign_in(self, provider, storage, super_admin):
        states = []
        provider.add_listener(states.append)

        assert provider.sign_in(super_admin.email, PASSWORD) == {'error': None}
        assert provider.state == STATE_AUTHENTICATED
        assert provider.role == 'super_admin'
        assert provider.identity.email == super_admin.email
        assert states == [STATE_AUTHENTICATED]
        assert json.loads(storage.get(ADMIN_TOKENS_KEY))['access_token'] == provider.access_token

    def test_sign_in_failure(self, provider, storage, super_admin):
        provider.initialize()
        assert provider.sign_in(super_admin.email, 'Wrong0pass!') == {'error': 'Invalid login credentials'}
        assert provider.state == STATE_ANONYMOUS
        assert storage.get(ADMIN_TOKENS_KEY) is None

    def test_sign_up(self, provider):
        result = provider.sign_up('fresh@cherry.test', PASSWORD, 'Fresh Face')
        assert result == {'error': None}
        assert provider.is_authenticated
        assert provider.role is None
        assert provider.identity.display_name == 'Fresh Face'

    def test_restore_from_storage(self, api, storage, super_admin):
        AdminSessionProvider(api, storage).sign_in(super_admin.email, PASSWORD)

        restored = AdminSessionProvider(api, storage)
        restored.initialize()
        assert restored.state == STATE_AUTHENTICATED
        assert restored.role == 'super_admin'

    def test_expired_access_token_refreshes(self, api, storage, super_admin):
        first = AdminSessionProvider(api, storage)
        first.sign_in(super_admin.email, PASSWORD)
        tokens = json.loads(storage.get(ADMIN_TOKENS_KEY))
        tokens['access_token'] = 'stale-token'
        storage.set(ADMIN_TOKENS_KEY, json.dumps(tokens))

        restored = AdminSessionProvider(api, storage)
        restored.initialize()
        assert restored.state == STATE_AUTHENTICATED
        assert restored.access_token not in (None, 'stale-token')

    def test_rejected_tokens_are_purged(self, provider, storage):
        storage.set(ADMIN_TOKENS_KEY, json.dumps({'access_token': 'bogus', 'refresh_token': 'bogus'}))
        provider.initialize()
        assert provider.state == STATE_ANONYMOUS
        assert storage.get(ADMIN_TOKENS_KEY) is None

    def test_corrupt_tokens_are_purged(self, provider, storage):
        storage.set(ADMIN_TOKENS_KEY, '{nope')
        provider.initialize()
        assert provider.state == STATE_ANONYMOUS
        assert storage.get(ADMIN_TOKENS_KEY) is None

    def test_network_failure_fails_closed(self, storage):
        def handler(request):
            raise httpx.ConnectError('connection refused', request=request)

        storage.set(ADMIN_TOKENS_KEY, json.dumps({'access_token': 'a', 'refresh_token': 'r'}))
        provider = AdminSessionProvider(ApiClient('http://pos.test', transport=httpx.MockTransport(handler)), storage)
        provider.initialize()
        assert provider.state == STATE_ANONYMOUS
        assert storage.get(ADMIN_TOKENS_KEY) is None

    def test_sign_out_revokes_and_clears(self, api, provider, storage, super_admin):
        provider.sign_in(super_admin.email, PASSWORD)
        token = provider.access_token
        provider.sign_out()

        assert provider.state == STATE_ANONYMOUS
        assert storage.get(ADMIN_TOKENS_KEY) is None
        with pytest.raises(ApiError) as exc_info:
            api.me(token)
        assert exc_info.value.status == 401

    def test_sign_out_clears_even_when_server_fails(self, storage):
        storage.set(ADMIN_TOKENS_KEY, json.dumps({'access_token': 'a'}))
        api = ApiClient('http://pos.test', transport=httpx.MockTransport(
            lambda request: httpx.Response(500, json={'error': 'boom'})
        ))
        provider = AdminSessionProvider(api, storage)
        provider.sign_out()
        assert storage.get(ADMIN_TOKENS_KEY) is None
        assert provider.state == STATE_ANONYMOUS

    def test_listener_unsubscribe(self, provider):
        states = []
        unsubscribe = provider.add_listener(states.append)
        provider.initialize()
        unsubscribe()
        provider.initialize()
        assert states == [STATE_ANONYMOUS]


class TestTerminalSession:
    def test_staff_overrides_admin(self, api, storage, manager, waitstaff):
        terminal = TerminalSession(AdminSessionProvider(api, storage), StaffSessionProvider(api, storage))
        terminal.initialize()
        assert terminal.identity is None
        assert not terminal.can(['manager'])

        terminal.admin.sign_in(manager.email, PASSWORD)
        assert terminal.role == 'manager'
        assert terminal.token == terminal.admin.access_token

        terminal.staff.staff_login('wendy', PASSWORD)
        assert terminal.identity.kind == 'staff'
        assert terminal.role == 'waitstaff'
        assert terminal.token == terminal.staff.token
        assert [e.label for g in terminal.navigation() for e in g.entries] == [
            'Dashboard', 'POS', 'Transfers', 'Customers',
        ]

        terminal.staff.staff_logout()
        assert terminal.role == 'manager'

    def test_staff_token_works_against_server(self, api, storage, waitstaff):
        staff = StaffSessionProvider(api, storage)
        staff.initialize()
        assert staff.staff_login('wendy', PASSWORD) == {'success': True}
        assert api.me(staff.token)['identity']['username'] == 'wendy'
        assert api.navigation(staff.token)['role'] == 'waitstaff'

"""
Venue settings and self-service profile tests.
"""

import pytest

from cherry_pos.services import settings_service
from cherry_pos.services.settings_service import SettingsValidationError


class TestSettingsService:
    def test_absent_until_first_update(self, app):
        assert settings_service.get_settings() is None

    def test_first_update_creates_row_with_defaults(self, app):
        settings = settings_service.update_settings({'tagline': 'Grill & Bar', 'currency': 'usd'})
        assert settings.name == 'Cherry Dining'
        assert settings.currency == 'USD'
        assert settings.timezone == 'Africa/Lagos'
        assert settings.receipt_show_logo is True

    def test_updates_single_row(self, app):
        first = settings_service.update_settings({'city': 'Lagos'})
        second = settings_service.update_settings({'city': 'Abuja', 'receipt_footer': 'Thank you!'})
        assert first.id == second.id
        assert settings_service.get_settings().to_dict()['city'] == 'Abuja'

    @pytest.mark.parametrize('changes', [
        {'currency': 'naira'},
        {'timezone': 'Lagos time'},
        {'email': 'nope'},
        {'name': ' '},
        {'receipt_show_logo': 'yes'},
        {'wifi_password': 'x'},
    ])
    def test_invalid(self, app, changes):
        with pytest.raises(SettingsValidationError):
            settings_service.update_settings(changes)
        assert settings_service.get_settings() is None

    def test_optional_text_cleared(self, app):
        settings_service.update_settings({'phone': '0800'})
        assert settings_service.update_settings({'phone': ''}).phone is None


class TestSettingsRoutes:
    def test_get_is_null_before_save(self, client, admin_headers):
        response = client.get('/api/settings', headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json() == {'settings': None}

    def test_manager_saves(self, client, manager_headers):
        response = client.patch('/api/settings', headers=manager_headers, json={
            'name': 'Cherry Dining VI',
            'receipt_show_logo': False,
        })
        assert response.status_code == 200
        data = client.get('/api/settings', headers=manager_headers).get_json()['settings']
        assert data['name'] == 'Cherry Dining VI'
        assert data['receipt_show_logo'] is False

    def test_cashier_cannot_save(self, client, cashier_headers):
        assert client.patch('/api/settings', headers=cashier_headers, json={'city': 'Lagos'}).status_code == 403

    def test_invalid_is_400(self, client, admin_headers):
        response = client.patch('/api/settings', headers=admin_headers, json={'currency': 'XX'})
        assert response.status_code == 400


class TestProfiles:
    def test_get(self, client, admin_headers, manager):
        response = client.get(f'/api/profiles/{manager.id}', headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()['profile'] == {
            'id': manager.id,
            'email': 'manager@cherry.test',
            'full_name': 'Max Manager',
            'avatar_url': None,
        }

    def test_update_own(self, client, manager_headers, manager):
        response = client.patch(f'/api/profiles/{manager.id}', headers=manager_headers, json={
            'full_name': ' Maxine Manager ',
            'avatar_url': 'https://cdn.cherry.test/max.png',
        })
        assert response.status_code == 200
        profile = response.get_json()['profile']
        assert profile['full_name'] == 'Maxine Manager'
        assert profile['avatar_url'] == 'https://cdn.cherry.test/max.png'

    def test_cannot_update_other(self, client, admin_headers, manager):
        response = client.patch(f'/api/profiles/{manager.id}', headers=admin_headers, json={'full_name': 'X'})
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Cannot update other users profile'

    def test_staff_identity_cannot_update_admin_profile(self, client, cashier_staff, cashier_headers):
        response = client.patch(f'/api/profiles/{cashier_staff.id}', headers=cashier_headers, json={'full_name': 'X'})
        assert response.status_code == 403

    def test_unknown(self, client, admin_headers):
        assert client.get('/api/profiles/999', headers=admin_headers).status_code == 404

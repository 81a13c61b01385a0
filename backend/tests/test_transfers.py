"""
Bar and transfer tests.

Verifies:
- Store-to-bar transfers move stock out of the store and into the bar at once
- Bar-to-bar transfers hold stock while pending, then accept or reject
- Only the destination bar (or a bar administrator) can respond
"""

import pytest

from cherry_pos.services import assignment_service, inventory_service, transfer_service
from cherry_pos.services.transfer_service import TransferError


@pytest.fixture
def gin(app):
    return inventory_service.create_item('Gin', unit='bottle', current_stock=20)


@pytest.fixture
def bars(app):
    return transfer_service.create_bar('Main Bar'), transfer_service.create_bar('Pool Bar')


@pytest.fixture
def stocked(bars, gin):
    main, _pool = bars
    transfer_service.transfer_store_to_bar(main.id, gin.id, 10)
    return bars


class TestBars:
    def test_duplicate_name_rejected(self, bars):
        with pytest.raises(TransferError):
            transfer_service.create_bar('main bar')

    def test_delete_bar_with_history_refused(self, stocked):
        main, pool = stocked
        with pytest.raises(TransferError):
            transfer_service.delete_bar(main.id)
        transfer_service.delete_bar(pool.id)
        assert transfer_service.get_bar(pool.id) is None

    def test_routes(self, client, admin_headers, cashier_headers):
        response = client.post('/api/bars', headers=admin_headers, json={'name': 'Roof Bar'})
        assert response.status_code == 201
        bar_id = response.get_json()['bar']['id']

        assert client.post('/api/bars', headers=cashier_headers, json={'name': 'X'}).status_code == 403

        response = client.patch(f'/api/bars/{bar_id}', headers=admin_headers, json={'is_active': False})
        assert response.get_json()['bar']['is_active'] is False

        data = client.get('/api/bars?active=true', headers=cashier_headers).get_json()
        assert bar_id not in [b['id'] for b in data['bars']]


class TestStoreToBar:
    def test_moves_stock(self, bars, gin):
        main, _pool = bars
        transfer = transfer_service.transfer_store_to_bar(main.id, gin.id, 6)
        assert transfer.status == 'completed'
        assert transfer.source_bar_id is None
        assert inventory_service.get_item(gin.id).current_stock == 14
        assert transfer_service.get_bar_stock(main.id, gin.id) == 6

    def test_insufficient_store_stock(self, bars, gin):
        main, _pool = bars
        with pytest.raises(TransferError, match='Insufficient store stock'):
            transfer_service.transfer_store_to_bar(main.id, gin.id, 21)
        assert inventory_service.get_item(gin.id).current_stock == 20

    def test_inactive_bar(self, bars, gin):
        main, _pool = bars
        transfer_service.update_bar(main.id, is_active=False)
        with pytest.raises(TransferError):
            transfer_service.transfer_store_to_bar(main.id, gin.id, 1)

    def test_route(self, client, admin_headers, bars, gin):
        main, _pool = bars
        response = client.post('/api/transfers/store-to-bar', headers=admin_headers, json={
            'bar_id': main.id,
            'inventory_item_id': gin.id,
            'quantity': 2,
        })
        assert response.status_code == 201
        transfer = response.get_json()['transfer']
        assert transfer['destination_bar'] == {'name': 'Main Bar'}
        assert transfer['inventory_item']['name'] == 'Gin'

        data = client.get(f'/api/bars/{main.id}/inventory', headers=admin_headers).get_json()
        assert data['inventory'][0]['current_stock'] == 2


class TestBarToBar:
    def test_pending_holds_source_stock(self, stocked, gin):
        main, pool = stocked
        transfer = transfer_service.create_bar_transfer(main.id, pool.id, gin.id, 4)
        assert transfer.status == 'pending'
        assert transfer_service.get_bar_stock(main.id, gin.id) == 6
        assert transfer_service.get_bar_stock(pool.id, gin.id) == 0
        assert [t.id for t in transfer_service.list_pending_for_bar(pool.id)] == [transfer.id]

    def test_accept_credits_destination(self, stocked, gin):
        main, pool = stocked
        transfer = transfer_service.create_bar_transfer(main.id, pool.id, gin.id, 4)
        transfer = transfer_service.respond_to_transfer(transfer.id, 'accept')
        assert transfer.status == 'completed'
        assert transfer.responded_at is not None
        assert transfer_service.get_bar_stock(main.id, gin.id) == 6
        assert transfer_service.get_bar_stock(pool.id, gin.id) == 4

    def test_reject_returns_stock(self, stocked, gin):
        main, pool = stocked
        transfer = transfer_service.create_bar_transfer(main.id, pool.id, gin.id, 4)
        transfer_service.respond_to_transfer(transfer.id, 'reject')
        assert transfer_service.get_bar_stock(main.id, gin.id) == 10
        assert transfer_service.get_bar_stock(pool.id, gin.id) == 0

    def test_respond_only_once(self, stocked, gin):
        main, pool = stocked
        transfer = transfer_service.create_bar_transfer(main.id, pool.id, gin.id, 1)
        transfer_service.respond_to_transfer(transfer.id, 'accept')
        with pytest.raises(TransferError, match='already completed'):
            transfer_service.respond_to_transfer(transfer.id, 'reject')

    def test_same_bar_rejected(self, stocked, gin):
        main, _pool = stocked
        with pytest.raises(TransferError):
            transfer_service.create_bar_transfer(main.id, main.id, gin.id, 1)

    def test_insufficient_source_stock(self, stocked, gin):
        main, pool = stocked
        with pytest.raises(TransferError, match='Insufficient stock at source bar'):
            transfer_service.create_bar_transfer(pool.id, main.id, gin.id, 1)

    def test_invalid_response(self, stocked, gin):
        main, pool = stocked
        transfer = transfer_service.create_bar_transfer(main.id, pool.id, gin.id, 1)
        with pytest.raises(TransferError):
            transfer_service.respond_to_transfer(transfer.id, 'maybe')


class TestRespondRoute:
    def request_transfer(self, client, headers, source, destination, item):
        response = client.post('/api/transfers', headers=headers, json={
            'source_bar_id': source.id,
            'destination_bar_id': destination.id,
            'inventory_item_id': item.id,
            'quantity': 3,
        })
        assert response.status_code == 201
        return response.get_json()['transfer']

    def test_destination_cashier_accepts(self, client, stocked, gin, cashier_staff, cashier_headers, admin_headers):
        main, pool = stocked
        assignment_service.assign(pool.id, staff_user_id=cashier_staff.id)
        transfer = self.request_transfer(client, admin_headers, main, pool, gin)

        response = client.post(f"/api/transfers/{transfer['id']}/respond", headers=cashier_headers, json={
            'response': 'accept',
        })
        assert response.status_code == 200
        assert response.get_json()['transfer']['status'] == 'completed'
        assert transfer_service.get_bar_stock(pool.id, gin.id) == 3

    def test_non_destination_cashier_forbidden(self, client, stocked, gin, cashier_staff, cashier_headers, admin_headers):
        main, pool = stocked
        assignment_service.assign(main.id, staff_user_id=cashier_staff.id)
        transfer = self.request_transfer(client, admin_headers, main, pool, gin)

        response = client.post(f"/api/transfers/{transfer['id']}/respond", headers=cashier_headers, json={
            'response': 'accept',
        })
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Only the destination bar can respond to this transfer'
        assert transfer_service.get_transfer(transfer['id']).status == 'pending'

    def test_unassigned_cashier_forbidden(self, client, stocked, gin, cashier_headers, admin_headers):
        main, pool = stocked
        transfer = self.request_transfer(client, admin_headers, main, pool, gin)
        response = client.post(f"/api/transfers/{transfer['id']}/respond", headers=cashier_headers, json={
            'response': 'reject',
        })
        assert response.status_code == 403

    def test_manager_may_respond_anywhere(self, client, stocked, gin, admin_headers, manager_headers):
        main, pool = stocked
        transfer = self.request_transfer(client, admin_headers, main, pool, gin)
        response = client.post(f"/api/transfers/{transfer['id']}/respond", headers=manager_headers, json={
            'response': 'reject',
        })
        assert response.status_code == 200
        assert response.get_json()['transfer']['status'] == 'rejected'

    def test_unknown_transfer(self, client, admin_headers):
        response = client.post('/api/transfers/999/respond', headers=admin_headers, json={'response': 'accept'})
        assert response.status_code == 404

    def test_transfer_detail(self, client, stocked, gin, admin_headers):
        main, pool = stocked
        transfer = self.request_transfer(client, admin_headers, main, pool, gin)
        data = client.get(f"/api/transfers/{transfer['id']}", headers=admin_headers).get_json()
        assert data['transfer']['source_bar'] == {'name': 'Main Bar'}
        assert data['transfer']['quantity'] == 3.0
        assert client.get('/api/transfers/999', headers=admin_headers).status_code == 404

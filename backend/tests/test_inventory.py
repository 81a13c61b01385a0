"""
Inventory and stock movement tests.
"""

from decimal import Decimal

import pytest

from cherry_pos.extensions import db
from cherry_pos.models import StockMovement
from cherry_pos.services import inventory_service
from cherry_pos.services.inventory_service import InventoryError, apply_movement, stock_status


class TestMovementArithmetic:
    @pytest.mark.parametrize('previous,quantity,expected', [
        (10, 3, 7),
        (10, 10, 0),
        (3, 5, 0),
        (0, 1, 0),
    ])
    def test_out_floors_at_zero(self, previous, quantity, expected):
        new_stock, recorded = apply_movement(previous, 'out', quantity)
        assert new_stock == Decimal(expected)
        assert recorded == Decimal(quantity)

    def test_in_adds(self):
        assert apply_movement('2.5', 'in', '1.25') == (Decimal('3.75'), Decimal('1.25'))

    @pytest.mark.parametrize('previous,target,recorded', [(10, 4, 6), (4, 10, 6), (5, 5, 0)])
    def test_adjustment_records_absolute_difference(self, previous, target, recorded):
        assert apply_movement(previous, 'adjustment', target) == (Decimal(target), Decimal(recorded))

    def test_unknown_type(self):
        with pytest.raises(InventoryError):
            apply_movement(1, 'teleport', 1)

    @pytest.mark.parametrize('current,minimum,expected', [
        (0, 5, 'out'),
        (-1, 0, 'out'),
        (5, 5, 'low'),
        (3, 5, 'low'),
        (6, 5, 'ok'),
        (1, 0, 'ok'),
    ])
    def test_stock_status(self, current, minimum, expected):
        assert stock_status(current, minimum) == expected


class TestInventoryService:
    def test_opening_stock_is_recorded(self, app):
        item = inventory_service.create_item('Gin', unit='bottle', current_stock=12, min_stock_level=2)
        assert item.current_stock == 12
        movement = db.session.query(StockMovement).filter_by(inventory_item_id=item.id).one()
        assert movement.movement_type == 'in'
        assert movement.previous_stock == 0
        assert movement.new_stock == 12

    def test_no_movement_for_zero_opening_stock(self, app):
        item = inventory_service.create_item('Tonic')
        assert db.session.query(StockMovement).filter_by(inventory_item_id=item.id).count() == 0

    def test_remove_more_than_available(self, app):
        item = inventory_service.create_item('Lime', current_stock=3)
        movement = inventory_service.remove_stock(item.id, 5)
        assert movement.previous_stock == 3
        assert movement.new_stock == 0
        assert movement.quantity == 5
        assert inventory_service.get_item(item.id).current_stock == 0

    def test_adjustment(self, app):
        item = inventory_service.create_item('Ice', current_stock=10)
        movement = inventory_service.adjust_stock(item.id, 4)
        assert movement.movement_type == 'adjustment'
        assert movement.quantity == 6
        assert inventory_service.get_item(item.id).current_stock == 4

    def test_adjust_to_zero_allowed(self, app):
        item = inventory_service.create_item('Mint', current_stock=2)
        inventory_service.adjust_stock(item.id, 0)
        assert inventory_service.get_item(item.id).current_stock == 0

    @pytest.mark.parametrize('quantity', [0, -1, 'lots', True, float('nan')])
    def test_invalid_quantities(self, app, quantity):
        item = inventory_service.create_item('Salt', current_stock=2)
        with pytest.raises(InventoryError):
            inventory_service.add_stock(item.id, quantity)

    def test_name_required(self, app):
        with pytest.raises(InventoryError):
            inventory_service.create_item('  ')

    def test_low_stock_listing(self, app):
        inventory_service.create_item('Rum', current_stock=1, min_stock_level=3)
        inventory_service.create_item('Vodka', current_stock=10, min_stock_level=3)
        assert [i.name for i in inventory_service.list_items(low_stock=True)] == ['Rum']


class TestInventoryRoutes:
    def test_create_and_move(self, client, admin_headers):
        response = client.post('/api/inventory/items', headers=admin_headers, json={
            'name': 'Whisky',
            'unit': 'bottle',
            'category': 'Spirits',
            'current_stock': 4,
            'min_stock_level': 2,
            'cost_per_unit': 9000,
        })
        assert response.status_code == 201
        item = response.get_json()['item']
        assert item['stock_status'] == 'ok'

        response = client.post(f"/api/inventory/items/{item['id']}/movements", headers=admin_headers, json={
            'movement_type': 'out',
            'quantity': 3,
        })
        assert response.status_code == 201
        data = response.get_json()
        assert data['movement']['new_stock'] == 1
        assert data['item']['stock_status'] == 'low'

        response = client.post(f"/api/inventory/items/{item['id']}/movements", headers=admin_headers, json={
            'movement_type': 'adjustment',
            'new_stock': 0,
        })
        assert response.get_json()['item']['stock_status'] == 'out'

    def test_missing_quantity(self, client, admin_headers):
        item = inventory_service.create_item('Beer')
        response = client.post(f'/api/inventory/items/{item.id}/movements', headers=admin_headers, json={
            'movement_type': 'in',
        })
        assert response.status_code == 400

    def test_unknown_item(self, client, admin_headers):
        response = client.post('/api/inventory/items/999/movements', headers=admin_headers, json={
            'movement_type': 'in',
            'quantity': 1,
        })
        assert response.status_code == 404

    def test_movement_ledger(self, client, cashier_headers):
        item = inventory_service.create_item('Wine', current_stock=6)
        inventory_service.remove_stock(item.id, 2)
        data = client.get(f'/api/inventory/movements?item_id={item.id}', headers=cashier_headers).get_json()
        assert [m['movement_type'] for m in data['movements']] == ['out', 'in']

"""
Order tests: numbering, stock deduction, status lifecycle and display scopes.
"""

from datetime import datetime

import pytest

from cherry_pos.extensions import db
from cherry_pos.models import MenuItem, StockMovement
from cherry_pos.services import inventory_service, order_service
from cherry_pos.services.order_service import OrderError


WATER = {'item_name': 'Water', 'unit_price': 500, 'quantity': 1}


@pytest.fixture
def tracked_dish(app):
    stock = inventory_service.create_item('Burger patty', current_stock=3)
    dish = MenuItem(name='Burger', price=4500, track_inventory=True, inventory_item_id=stock.id)
    db.session.add(dish)
    db.session.commit()
    return dish


class TestOrderNumbers:
    def test_sequential_within_day(self, app):
        first = order_service.create_order('dine_in', [WATER])
        second = order_service.create_order('takeaway', [WATER])

        prefix = order_service.order_number_prefix(first.created_at.date())
        assert first.order_number == f'{prefix}0001'
        assert second.order_number == f'{prefix}0002'

    def test_prefix_format(self):
        assert order_service.order_number_prefix(datetime(2024, 6, 1).date()) == 'ORD-240601-'

    def test_new_day_restarts(self, app):
        order_service.create_order('dine_in', [WATER])
        assert order_service.next_order_number(datetime(2030, 1, 2, 9, 0)) == 'ORD-300102-0001'


class TestCreateOrder:
    def test_totals(self, app):
        order = order_service.create_order('dine_in', [
            {'item_name': 'Chips', 'unit_price': '3.50', 'quantity': 2},
            WATER,
        ], table_number=' 7 ')
        assert float(order.subtotal) == 507.0
        assert float(order.total_amount) == 507.0
        assert order.table_number == '7'
        assert [i.item_name for i in order.items] == ['Chips', 'Water']

    def test_menu_item_price_used(self, tracked_dish):
        order = order_service.create_order('dine_in', [{'menu_item_id': tracked_dish.id, 'quantity': 1}])
        assert order.items[0].item_name == 'Burger'
        assert float(order.items[0].unit_price) == 4500.0

    def test_tracked_item_deducts_stock(self, tracked_dish):
        order = order_service.create_order('dine_in', [{'menu_item_id': tracked_dish.id, 'quantity': 2}])
        assert inventory_service.get_item(tracked_dish.inventory_item_id).current_stock == 1

        movement = db.session.query(StockMovement).filter_by(reference=order.order_number).one()
        assert movement.movement_type == 'out'
        assert movement.quantity == 2

    def test_insufficient_stock_rejected(self, tracked_dish):
        with pytest.raises(OrderError, match='Insufficient stock'):
            order_service.create_order('dine_in', [{'menu_item_id': tracked_dish.id, 'quantity': 4}])
        assert inventory_service.get_item(tracked_dish.inventory_item_id).current_stock == 3
        assert order_service.list_orders() == []

    @pytest.mark.parametrize('items', [
        [],
        [{'item_name': 'Chips', 'unit_price': 1, 'quantity': 0}],
        [{'item_name': 'Chips', 'unit_price': 1, 'quantity': 1.5}],
        [{'item_name': 'Chips', 'unit_price': -1, 'quantity': 1}],
        [{'item_name': '', 'unit_price': 1, 'quantity': 1}],
        [{'item_name': 'Chips', 'quantity': 1}],
        [{'menu_item_id': 999, 'quantity': 1}],
    ])
    def test_invalid_items(self, app, items):
        with pytest.raises(OrderError):
            order_service.create_order('dine_in', items)

    def test_invalid_type(self, app):
        with pytest.raises(OrderError):
            order_service.create_order('drive_through', [WATER])


class TestStatusLifecycle:
    def test_happy_path(self, app):
        order = order_service.create_order('dine_in', [WATER])
        for status in ('preparing', 'ready', 'completed'):
            assert order_service.update_status(order.id, status).status == status

    @pytest.mark.parametrize('path', [
        ('ready',),
        ('completed',),
        ('preparing', 'pending'),
        ('cancelled', 'preparing'),
        ('preparing', 'ready', 'completed', 'cancelled'),
    ])
    def test_illegal_transitions(self, app, path):
        order = order_service.create_order('dine_in', [WATER])
        *allowed, illegal = path
        for status in allowed:
            order_service.update_status(order.id, status)
        with pytest.raises(OrderError):
            order_service.update_status(order.id, illegal)

    def test_same_status_rejected(self, app):
        order = order_service.create_order('dine_in', [WATER])
        with pytest.raises(OrderError):
            order_service.update_status(order.id, 'pending')

    @pytest.mark.parametrize('status', ['pending', 'preparing', 'ready'])
    def test_cancel_from_open_states(self, app, status):
        order = order_service.create_order('dine_in', [WATER])
        path = {'pending': [], 'preparing': ['preparing'], 'ready': ['preparing', 'ready']}[status]
        for step in path:
            order_service.update_status(order.id, step)
        assert order_service.update_status(order.id, 'cancelled').status == 'cancelled'


class TestScopes:
    def test_active_orders_by_scope(self, app):
        for order_type in ('dine_in', 'takeaway', 'bar_only', 'delivery'):
            order_service.create_order(order_type, [WATER])
        done = order_service.create_order('dine_in', [WATER])
        order_service.update_status(done.id, 'preparing')
        order_service.update_status(done.id, 'ready')

        def types(scope):
            return [o.order_type for o in order_service.list_active_orders(scope)]

        assert types('all') == ['dine_in', 'takeaway', 'bar_only', 'delivery']
        assert types('kitchen') == ['dine_in', 'takeaway', 'delivery']
        assert types('bar') == ['dine_in', 'bar_only']

    def test_invalid_scope(self, app):
        with pytest.raises(OrderError):
            order_service.list_active_orders('patio')


class TestOrderRoutes:
    def test_waitstaff_places_order(self, client, waitstaff, waitstaff_headers):
        response = client.post('/api/orders', headers=waitstaff_headers, json={
            'order_type': 'dine_in',
            'table_number': '12',
            'items': [WATER],
        })
        assert response.status_code == 201
        order = response.get_json()['order']
        assert order['order_number'].startswith('ORD-')
        assert order['created_by'] == waitstaff.id
        assert order['order_items'][0]['item_name'] == 'Water'

    def test_bar_staff_updates_status(self, client, bar_staff_headers):
        order = order_service.create_order('bar_only', [WATER])
        response = client.patch(f'/api/orders/{order.id}/status', headers=bar_staff_headers, json={'status': 'preparing'})
        assert response.status_code == 200
        assert response.get_json()['order']['status'] == 'preparing'

    def test_illegal_transition_is_400(self, client, cashier_headers):
        order = order_service.create_order('dine_in', [WATER])
        response = client.patch(f'/api/orders/{order.id}/status', headers=cashier_headers, json={'status': 'completed'})
        assert response.status_code == 400

    def test_unknown_order_is_404(self, client, cashier_headers):
        response = client.patch('/api/orders/999/status', headers=cashier_headers, json={'status': 'preparing'})
        assert response.status_code == 404

    def test_active_queue(self, client, cashier_headers):
        order_service.create_order('bar_only', [WATER])
        order_service.create_order('takeaway', [WATER])
        data = client.get('/api/orders/active?scope=kitchen', headers=cashier_headers).get_json()
        assert [o['order_type'] for o in data['orders']] == ['takeaway']

    def test_list_with_search(self, client, cashier_headers):
        order = order_service.create_order('dine_in', [WATER])
        order_service.create_order('dine_in', [WATER])
        data = client.get(f'/api/orders?search={order.order_number}', headers=cashier_headers).get_json()
        assert [o['id'] for o in data['orders']] == [order.id]

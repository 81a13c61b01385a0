"""
Payment capture, date-range order queries, sales summary and end-of-day
report tests.
"""

from datetime import date, datetime, timedelta

import pytest

from cherry_pos.extensions import db
from cherry_pos.models import Order
from cherry_pos.permissions import ACCOUNTANT
from cherry_pos.services import menu_service, order_service, payment_service, report_service
from cherry_pos.services.auth_service import sign_up
from cherry_pos.services.order_service import OrderError
from cherry_pos.services.payment_service import PaymentError
from cherry_pos.services.report_service import ReportError
from cherry_pos.time_utils import utcnow

from conftest import PASSWORD, admin_token, auth_headers


WATER = {'item_name': 'Water', 'unit_price': 500, 'quantity': 1}


def complete(order):
    for status in ('preparing', 'ready', 'completed'):
        order_service.update_status(order.id, status)
    return order


@pytest.fixture
def sales(app):
    """Two completed orders and one left pending."""
    cola = menu_service.create_item('Cola', 500, cost_price=200)
    suya = menu_service.create_item('Suya', 2500, cost_price=1500)

    first = complete(order_service.create_order('dine_in', [
        {'menu_item_id': cola.id, 'quantity': 2},
        {'menu_item_id': suya.id, 'quantity': 1},
    ], payment_method='cash', created_by=7))
    second = complete(order_service.create_order('takeaway', [
        {'menu_item_id': cola.id, 'quantity': 1},
        WATER,
    ], payment_method='card', created_by=8))
    order_service.create_order('dine_in', [WATER], payment_method='cash', created_by=7)
    return first, second


class TestPayments:
    def test_checkout_records_full_payment(self, app):
        order = order_service.create_order('dine_in', [WATER], payment_method='mobile_money', created_by=3)
        assert [(p.payment_method, float(p.amount), p.status, p.created_by) for p in order.payments] == [
            ('mobile_money', 500.0, 'completed', 3),
        ]
        data = order.to_dict(include_items=True)
        assert data['amount_paid'] == 500.0
        assert data['payment_status'] == 'paid'

    def test_no_method_leaves_order_unpaid(self, app):
        order = order_service.create_order('dine_in', [WATER])
        assert order.payments == []
        assert payment_service.payment_status(order) == 'unpaid'

    def test_invalid_method_rejected_before_order(self, app):
        with pytest.raises(OrderError, match='Invalid payment method'):
            order_service.create_order('dine_in', [WATER], payment_method='cheque')
        assert db.session.query(Order).count() == 0

    def test_split_tender_settles_balance(self, app):
        order = order_service.create_order('dine_in', [{'item_name': 'Platter', 'unit_price': 5000, 'quantity': 1}])
        payment_service.add_payment(order.id, 'card', amount=2000)
        assert payment_service.payment_status(order) == 'partial'
        assert payment_service.balance_due(order) == 3000

        payment = payment_service.add_payment(order.id, 'cash')
        assert float(payment.amount) == 3000.0
        assert payment_service.payment_status(order) == 'paid'

        with pytest.raises(PaymentError, match='already paid'):
            payment_service.add_payment(order.id, 'cash', amount=1)

    @pytest.mark.parametrize('method,amount,message', [
        ('cash', 0, 'must be positive'),
        ('cash', -5, 'must be positive'),
        ('cash', 501, 'exceeds balance'),
        ('cheque', 100, 'Invalid payment method'),
    ])
    def test_invalid_payment(self, app, method, amount, message):
        order = order_service.create_order('dine_in', [WATER])
        with pytest.raises(PaymentError, match=message):
            payment_service.add_payment(order.id, method, amount=amount)
        assert order.payments == []

    def test_cancelled_order_takes_no_payment(self, app):
        order = order_service.create_order('dine_in', [WATER])
        order_service.update_status(order.id, 'cancelled')
        with pytest.raises(PaymentError, match='cancelled'):
            payment_service.add_payment(order.id, 'cash')

    def test_route(self, client, cashier_headers):
        order = order_service.create_order('dine_in', [WATER])
        response = client.post(f'/api/orders/{order.id}/payments', headers=cashier_headers, json={
            'payment_method': 'bank_transfer',
            'reference': 'TRX-1',
        })
        assert response.status_code == 201
        data = response.get_json()
        assert data['payment']['reference'] == 'TRX-1'
        assert data['order']['payment_status'] == 'paid'

        assert client.post('/api/orders/999/payments', headers=cashier_headers, json={
            'payment_method': 'cash',
        }).status_code == 404

    def test_order_route_takes_payment_method(self, client, cashier_headers):
        response = client.post('/api/orders', headers=cashier_headers, json={
            'order_type': 'takeaway',
            'items': [WATER],
            'payment_method': 'card',
        })
        assert response.status_code == 201
        assert response.get_json()['order']['payments'][0]['payment_method'] == 'card'


class TestOrderRange:
    def test_inclusive_window_newest_first(self, sales):
        first, second = sales
        now = utcnow()
        orders = order_service.list_orders_in_range(now - timedelta(hours=1), now + timedelta(hours=1))
        assert len(orders) == 3
        assert orders[-1].id == first.id

        completed = order_service.list_orders_in_range(
            now - timedelta(hours=1), now + timedelta(hours=1), status='completed',
        )
        assert [o.id for o in completed] == [second.id, first.id]

    def test_window_excludes_outside(self, sales):
        start = datetime(2000, 1, 1)
        assert order_service.list_orders_in_range(start, start + timedelta(days=1)) == []

    def test_invalid(self, app):
        now = utcnow()
        with pytest.raises(OrderError):
            order_service.list_orders_in_range(now, now - timedelta(seconds=1))
        with pytest.raises(OrderError):
            order_service.list_orders_in_range(now, now, status='lost')

    def test_date_only_end_covers_whole_day(self):
        start, end = report_service.parse_range('2024-06-01', '2024-06-01')
        assert start == datetime(2024, 6, 1)
        assert end == datetime(2024, 6, 1, 23, 59, 59, 999999)

    def test_timestamps_with_offset(self):
        start, end = report_service.parse_range('2024-06-01T01:00:00+01:00', '2024-06-01T12:00:00Z')
        assert start == datetime(2024, 6, 1, 0, 0)
        assert end == datetime(2024, 6, 1, 12, 0)

    @pytest.mark.parametrize('start,end', [(None, '2024-06-01'), ('2024-06-02', '2024-06-01'), ('soon', 'later')])
    def test_invalid_range(self, start, end):
        with pytest.raises(ReportError):
            report_service.parse_range(start, end)

    def test_route(self, client, admin_headers, sales):
        response = client.get('/api/orders/range?start=2020-01-01&end=2030-01-01', headers=admin_headers)
        assert response.status_code == 200
        orders = response.get_json()['orders']
        assert len(orders) == 3
        assert all('payments' in o and 'order_items' in o for o in orders)

        response = client.get('/api/orders/range?start=2020-01-01&end=2030-01-01&status=completed', headers=admin_headers)
        assert len(response.get_json()['orders']) == 2

    def test_route_rejects_bad_range(self, client, admin_headers):
        assert client.get('/api/orders/range?start=2020-01-01', headers=admin_headers).status_code == 400

    def test_route_limited_to_reporting_roles(self, client, cashier_headers):
        response = client.get('/api/orders/range?start=2020-01-01&end=2030-01-01', headers=cashier_headers)
        assert response.status_code == 403


class TestSalesSummary:
    def test_figures(self, sales):
        today = utcnow().date()
        report = report_service.sales_summary(*report_service.day_range(today))

        assert report['transaction_count'] == 2
        assert report['total_sales'] == 3500.0 + 1000.0
        assert report['average_transaction'] == 2250.0
        assert report['items_sold'] == 5
        assert report['payment_breakdown'] == {'card': 1000.0, 'cash': 3500.0}
        assert report['sales_by_type'] == {
            'dine_in': {'orders': 1, 'total': 3500.0},
            'takeaway': {'orders': 1, 'total': 1000.0},
        }
        assert report['revenue_by_day'] == [{'date': today.isoformat(), 'orders': 2, 'revenue': 4500.0}]
        assert report['top_items'][0] == {'name': 'Cola', 'quantity': 3, 'revenue': 1500.0}
        # Water has no menu item, so no cost
        assert report['total_cost'] == 3 * 200.0 + 1500.0
        assert report['gross_profit'] == 4500.0 - 2100.0

    def test_empty_window(self, app):
        report = report_service.sales_summary(datetime(2000, 1, 1), datetime(2000, 1, 2))
        assert report['transaction_count'] == 0
        assert report['average_transaction'] == 0.0
        assert report['top_items'] == []

    def test_end_of_day_for_one_cashier(self, sales):
        report = report_service.end_of_day(utcnow().date(), cashier_id=7)
        assert report['transaction_count'] == 1
        assert report['total_sales'] == 3500.0
        assert report['cashier_id'] == 7

    def test_end_of_day_other_date(self, sales):
        assert report_service.end_of_day(date(2000, 1, 1))['transaction_count'] == 0


class TestReportRoutes:
    def test_accountant_reads_sales(self, client, sales):
        sign_up('books@cherry.test', PASSWORD, role=ACCOUNTANT)
        headers = auth_headers(admin_token(client, 'books@cherry.test'))
        response = client.get('/api/reports/sales?start=2020-01-01&end=2030-01-01', headers=headers)
        assert response.status_code == 200
        assert response.get_json()['report']['transaction_count'] == 2

    def test_sales_bad_range(self, client, admin_headers):
        assert client.get('/api/reports/sales?start=x&end=y', headers=admin_headers).status_code == 400

    def test_cashier_cannot_read_sales(self, client, cashier_headers):
        response = client.get('/api/reports/sales?start=2020-01-01&end=2030-01-01', headers=cashier_headers)
        assert response.status_code == 403

    def test_manager_eod_filters_by_cashier(self, client, manager_headers, sales):
        data = client.get('/api/reports/eod?cashier_id=8', headers=manager_headers).get_json()['report']
        assert data['transaction_count'] == 1
        assert data['payment_breakdown'] == {'card': 1000.0}
        assert data['date'] == utcnow().date().isoformat()

    def test_cashier_eod_is_own_only(self, client, cashier_staff, cashier_headers, sales):
        order = client.post('/api/orders', headers=cashier_headers, json={
            'order_type': 'takeaway', 'items': [WATER], 'payment_method': 'cash',
        }).get_json()['order']
        complete(db.session.get(Order, order['id']))

        data = client.get('/api/reports/eod?cashier_id=7', headers=cashier_headers).get_json()['report']
        assert data['cashier_id'] == cashier_staff.id
        assert data['transaction_count'] == 1
        assert data['total_sales'] == 500.0

    def test_eod_bad_date(self, client, admin_headers):
        assert client.get('/api/reports/eod?date=yesterday', headers=admin_headers).status_code == 400

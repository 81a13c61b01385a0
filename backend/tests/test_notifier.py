"""
Order and transfer notifier tests.

Events are fed straight into handle(); timers are replaced with a fake whose
callback is fired by hand.
"""

import time

import pytest

from cherry_pos.client.notifier import (
    BARS_KEY,
    TRANSFERS_KEY,
    OrderNotifier,
    Toast,
    TransferNotifier,
    pending_transfers_key,
)
from cherry_pos.services.realtime_service import ChangeEvent, ChangeFeed, Subscription


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.callback()


class TimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer


def order_insert(order_id, order_type='dine_in', number=None):
    return {
        'table': 'orders',
        'type': 'INSERT',
        'new': {
            'id': order_id,
            'order_number': number or f'ORD-240601-{order_id:04d}',
            'order_type': order_type,
            'status': 'pending',
        },
        'old': None,
    }


def order_update(order_id, old_status, new_status):
    number = f'ORD-240601-{order_id:04d}'
    return ChangeEvent(
        table='orders',
        type='UPDATE',
        new={'id': order_id, 'order_number': number, 'order_type': 'dine_in', 'status': new_status},
        old={'id': order_id, 'order_number': number, 'order_type': 'dine_in', 'status': old_status},
    )


def transfer_row(transfer_id, destination, status='pending', quantity=5.0):
    return {
        'id': transfer_id,
        'source_bar_id': 1,
        'destination_bar_id': destination,
        'inventory_item_id': 3,
        'quantity': quantity,
        'status': status,
    }


@pytest.fixture
def timers():
    return TimerFactory()


@pytest.fixture
def sounds():
    return []


@pytest.fixture
def orders(timers, sounds):
    return OrderNotifier(scope='all', play_sound=sounds.append, timer_factory=timers)


class TestOrderNotifier:
    def test_new_order_alerts(self, orders, sounds):
        assert orders.handle(order_insert(1, number='ORD-240601-0001')) is True
        assert orders.recent_event_counter == 1
        assert sounds == [False]
        assert list(orders.toasts) == [Toast('🔔 New Order!', 'Order ORD-240601-0001 has been placed.')]

    def test_duplicate_insert_alerts_once(self, orders):
        assert orders.handle(order_insert(1)) is True
        assert orders.handle(order_insert(1)) is False
        assert orders.recent_event_counter == 1
        assert len(orders.toasts) == 1

    def test_distinct_inserts_both_alert(self, orders):
        orders.handle(order_insert(1))
        orders.handle(order_insert(2))
        assert orders.recent_event_counter == 2

    def test_kitchen_scope_skips_bar_only(self, timers):
        kitchen = OrderNotifier(scope='kitchen', timer_factory=timers)
        assert kitchen.handle(order_insert(1, order_type='bar_only')) is False
        assert kitchen.handle(order_insert(2, order_type='takeaway')) is True

    def test_bar_scope_keeps_bar_only_and_dine_in(self, timers):
        bar = OrderNotifier(scope='bar', timer_factory=timers)
        assert bar.handle(order_insert(1, order_type='takeaway')) is False
        assert bar.handle(order_insert(2, order_type='bar_only')) is True
        assert bar.handle(order_insert(3, order_type='dine_in')) is True

    def test_invalid_scope(self):
        with pytest.raises(ValueError):
            OrderNotifier(scope='patio')

    def test_status_change_not_to_ready_is_silent(self, orders, sounds):
        assert orders.handle(order_update(1, 'pending', 'preparing')) is False
        assert sounds == []
        assert len(orders.toasts) == 0

    def test_ready_alerts_once(self, orders, sounds):
        assert orders.handle(order_update(1, 'preparing', 'ready')) is True
        assert orders.handle(order_update(1, 'ready', 'ready')) is False
        assert sounds == [False]
        assert orders.toasts[-1].description == 'Order ORD-240601-0001 is ready for pickup.'
        assert orders.recent_event_counter == 0

    def test_counter_resets_after_latest_alert(self, orders, timers):
        orders.handle(order_insert(1))
        orders.handle(order_insert(2))
        assert orders.recent_event_counter == 2
        assert len(timers.timers) == 2
        assert timers.timers[0].cancelled
        assert timers.timers[1].delay == 3.0
        assert timers.timers[1].daemon

        timers.timers[1].fire()
        assert orders.recent_event_counter == 0

    def test_stale_timer_does_not_reset_newer_alert(self, orders, timers):
        orders.handle(order_insert(1))
        orders.handle(order_insert(2))

        # first timer fires late, after it was replaced
        timers.timers[0].fire()
        assert orders.recent_event_counter == 2
        assert orders._timer is timers.timers[1]

        timers.timers[1].fire()
        assert orders.recent_event_counter == 0
        assert orders._timer is None

    def test_sound_failure_is_swallowed(self, timers):
        def broken(urgent):
            raise RuntimeError('no audio device')

        notifier = OrderNotifier(play_sound=broken, timer_factory=timers)
        assert notifier.handle(order_insert(1)) is True
        assert len(notifier.toasts) == 1

    def test_sound_disabled(self, timers, sounds):
        notifier = OrderNotifier(play_sound=sounds.append, sound_enabled=False, timer_factory=timers)
        notifier.handle(order_insert(1))
        assert sounds == []

    def test_dispose_stops_handling(self, orders, timers):
        orders.handle(order_insert(1))
        orders.dispose()
        assert timers.timers[0].cancelled
        assert orders.handle(order_insert(2)) is False
        assert orders.disposed

    def test_on_toast_callback(self, timers):
        seen = []
        notifier = OrderNotifier(on_toast=seen.append, timer_factory=timers)
        notifier.handle(order_insert(1))
        assert seen[0].title == '🔔 New Order!'


class TestTransferNotifier:
    @pytest.fixture
    def invalidated(self):
        return []

    @pytest.fixture
    def details(self):
        return {
            10: {'source_bar': {'name': 'Main Bar'}, 'inventory_item': {'name': 'Gin'}},
        }

    @pytest.fixture
    def transfers(self, timers, sounds, invalidated, details):
        return TransferNotifier(
            assigned_bar_id=2,
            fetch_details=details.get,
            on_invalidate=invalidated.append,
            play_sound=sounds.append,
            timer_factory=timers,
        )

    def test_incoming_request_alerts(self, transfers, sounds, invalidated):
        event = {'table': 'bar_to_bar_transfers', 'type': 'INSERT', 'new': transfer_row(10, 2), 'old': None}
        assert transfers.handle(event) is True
        toast = transfers.toasts[-1]
        assert toast.title == '📦 New Transfer Request!'
        assert toast.description == 'Main Bar is requesting to transfer 5 Gin to your bar.'
        assert toast.duration == 8.0
        assert sounds == [False]
        assert invalidated == [pending_transfers_key(2), TRANSFERS_KEY]

    def test_foreign_bar_never_alerts(self, transfers, sounds, invalidated):
        event = {'table': 'bar_to_bar_transfers', 'type': 'INSERT', 'new': transfer_row(11, 9), 'old': None}
        assert transfers.handle(event) is False
        assert sounds == []
        assert invalidated == []
        assert transfers.recent_event_counter == 0

    def test_no_assignment_never_alerts(self, timers):
        notifier = TransferNotifier(assigned_bar_id=None, timer_factory=timers)
        event = {'table': 'bar_to_bar_transfers', 'type': 'INSERT', 'new': transfer_row(10, 2), 'old': None}
        assert notifier.handle(event) is False

    def test_assignment_read_on_every_event(self, timers):
        current = {'bar': 1}
        notifier = TransferNotifier(assigned_bar_id=lambda: current['bar'], timer_factory=timers)
        event = {'table': 'bar_to_bar_transfers', 'type': 'INSERT', 'new': transfer_row(12, 2), 'old': None}
        assert notifier.handle(event) is False

        current['bar'] = 2
        event['new'] = transfer_row(13, 2)
        assert notifier.handle(event) is True

    def test_duplicate_insert_alerts_once(self, transfers):
        event = {'table': 'bar_to_bar_transfers', 'type': 'INSERT', 'new': transfer_row(10, 2), 'old': None}
        assert transfers.handle(event) is True
        assert transfers.handle(event) is False
        assert transfers.recent_event_counter == 1

    def test_missing_details_use_fallback_labels(self, transfers):
        event = {'table': 'bar_to_bar_transfers', 'type': 'INSERT', 'new': transfer_row(99, 2, quantity=2.5), 'old': None}
        transfers.handle(event)
        assert transfers.toasts[-1].description == 'another bar is requesting to transfer 2.5 item to your bar.'

    def test_detail_lookup_failure_uses_fallback_labels(self, timers):
        def failing(transfer_id):
            raise RuntimeError('offline')

        notifier = TransferNotifier(assigned_bar_id=2, fetch_details=failing, timer_factory=timers)
        event = {'table': 'bar_to_bar_transfers', 'type': 'INSERT', 'new': transfer_row(10, 2), 'old': None}
        assert notifier.handle(event) is True
        assert notifier.toasts[-1].description == 'another bar is requesting to transfer 5 item to your bar.'

    def test_detail_lookup_runs_outside_lock(self, timers):
        holders = []

        def lookup(transfer_id):
            holders.append(notifier._lock._is_owned())
            return {}

        notifier = TransferNotifier(assigned_bar_id=2, fetch_details=lookup, timer_factory=timers)
        event = {'table': 'bar_to_bar_transfers', 'type': 'INSERT', 'new': transfer_row(10, 2), 'old': None}
        assert notifier.handle(event) is True
        assert holders == [False]

    def test_dispose_during_detail_lookup_suppresses_alert(self, timers, sounds):
        def lookup(transfer_id):
            notifier.dispose()
            return {'source_bar': {'name': 'Main Bar'}}

        notifier = TransferNotifier(
            assigned_bar_id=2, fetch_details=lookup, play_sound=sounds.append, timer_factory=timers,
        )
        event = {'table': 'bar_to_bar_transfers', 'type': 'INSERT', 'new': transfer_row(10, 2), 'old': None}
        assert notifier.handle(event) is False
        assert len(notifier.toasts) == 0
        assert sounds == []
        assert timers.timers == []

    def test_accepted(self, transfers, sounds, invalidated):
        event = ChangeEvent('bar_to_bar_transfers', 'UPDATE', transfer_row(10, 2, 'completed'), transfer_row(10, 2))
        assert transfers.handle(event) is True
        assert transfers.toasts[-1].title == '✅ Transfer Accepted!'
        assert sounds == [False]
        assert invalidated == [pending_transfers_key(2), TRANSFERS_KEY, BARS_KEY]

    def test_rejected_is_destructive_and_silent(self, transfers, sounds):
        event = ChangeEvent('bar_to_bar_transfers', 'UPDATE', transfer_row(10, 2, 'rejected'), transfer_row(10, 2))
        assert transfers.handle(event) is True
        toast = transfers.toasts[-1]
        assert toast.title == '❌ Transfer Rejected'
        assert toast.variant == 'destructive'
        assert sounds == []

    def test_unchanged_status_is_ignored(self, transfers, invalidated):
        event = ChangeEvent('bar_to_bar_transfers', 'UPDATE', transfer_row(10, 2), transfer_row(10, 2))
        assert transfers.handle(event) is False
        assert invalidated == []

    def test_consumes_subscription(self, timers):
        feed = ChangeFeed(queue_size=8)
        subscription = feed.subscribe('orders')
        assert isinstance(subscription, Subscription)

        notifier = OrderNotifier(subscription, timer_factory=timers).start()
        feed.publish(ChangeEvent.from_dict(order_insert(1)))
        deadline = time.monotonic() + 2
        while not notifier.toasts and time.monotonic() < deadline:
            time.sleep(0.01)
        notifier.dispose()
        notifier._thread.join(timeout=2)

        assert not notifier._thread.is_alive()
        assert len(notifier.toasts) == 1
        assert feed.subscriber_count('orders') == 0

# Overview: Order and transfer notifiers; turn change events into alerts, tones and cache invalidations.

"""
Notifiers for the kitchen/bar displays and the transfer screens.

Each notifier owns one change stream and two pieces of state:

- last_seen_id: id of the last inserted row seen. A repeated delivery of the
  same insert is dropped before any filtering.
- recent_event_counter: number of alerts raised recently. It is reset to 0
  RESET_DELAY seconds after the latest alert.

Handlers run under the notifier's lock; dispose() takes the same lock, so
once it returns no handler is running and none will run again. Slow lookups
(transfer details) happen in _prepare() before the lock is taken, and the
disposed flag is checked again afterwards.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..services.order_service import SCOPE_ALL, SCOPES, STATUS_READY, order_in_scope
from ..services.realtime_service import EVENT_INSERT, EVENT_UPDATE, ChangeEvent


logger = logging.getLogger(__name__)

RESET_DELAY = 3.0

# Cache keys invalidated when transfers change
BARS_KEY = ("bars",)
TRANSFERS_KEY = ("bars", "bar-to-bar-transfers")


def pending_transfers_key(bar_id) -> tuple:
    return ("bars", "pending-transfers", bar_id)


@dataclass(frozen=True)
class Toast:
    title: str
    description: str
    variant: str = "default"
    duration: float = 5.0


class _Notifier:
    def __init__(
        self,
        stream=None,
        *,
        sound_enabled: bool = True,
        play_sound: Optional[Callable[[bool], Any]] = None,
        on_toast: Optional[Callable[[Toast], Any]] = None,
        timer_factory: Callable[..., Any] = threading.Timer,
        reset_delay: float = RESET_DELAY,
    ):
        self.stream = stream
        self.sound_enabled = sound_enabled
        self.play_sound = play_sound
        self.on_toast = on_toast
        self.timer_factory = timer_factory
        self.reset_delay = reset_delay

        self.last_seen_id = None
        self.recent_event_counter = 0
        self.toasts: deque[Toast] = deque(maxlen=50)

        self._lock = threading.RLock()
        self._disposed = False
        self._timer = None
        self._thread: Optional[threading.Thread] = None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def start(self) -> "_Notifier":
        """Consume the stream on a daemon thread."""
        if self.stream is None:
            raise ValueError("No change stream to consume")
        self._thread = threading.Thread(target=self._run, name=type(self).__name__, daemon=True)
        self._thread.start()
        return self

    def _run(self) -> None:
        try:
            for change in self.stream:
                if self._disposed:
                    break
                self.handle(change)
        except Exception:
            if not self._disposed:
                logger.exception("%s stream failed", type(self).__name__)

    def handle(self, change) -> bool:
        """Process one change event. Returns True when an alert was raised."""
        if isinstance(change, dict):
            change = ChangeEvent.from_dict(change)
        if self._disposed:
            return False
        context = self._prepare(change)
        with self._lock:
            if self._disposed:
                return False
            if change.type == EVENT_INSERT:
                return self._on_insert(change.new or {}, context)
            if change.type == EVENT_UPDATE:
                return self._on_update(change.new or {}, change.old)
            return False

    def dispose(self) -> None:
        with self._lock:
            self._disposed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if self.stream is not None:
            self.stream.close()

    # -- alert plumbing --

    def _seen(self, row: dict) -> bool:
        row_id = row.get("id")
        if row_id is not None and row_id == self.last_seen_id:
            return True
        self.last_seen_id = row_id
        return False

    def _count(self) -> None:
        self.recent_event_counter += 1
        if self._timer is not None:
            self._timer.cancel()
        timer = None

        def expire():
            self._reset_counter(timer)

        timer = self.timer_factory(self.reset_delay, expire)
        timer.daemon = True
        timer.start()
        self._timer = timer

    def _reset_counter(self, timer=None) -> None:
        with self._lock:
            # a timer cancelled after it already fired must not reset a newer one
            if timer is not None and timer is not self._timer:
                return
            self.recent_event_counter = 0
            self._timer = None

    def _tone(self, urgent: bool = False) -> None:
        if not self.sound_enabled or self.play_sound is None:
            return
        try:
            self.play_sound(urgent)
        except Exception:
            logger.debug("Notification sound failed", exc_info=True)

    def _toast(self, toast: Toast) -> None:
        self.toasts.append(toast)
        if self.on_toast is not None:
            self.on_toast(toast)

    def _prepare(self, change: ChangeEvent):
        """Work done outside the lock before an event is handled."""
        return None

    def _on_insert(self, row: dict, context=None) -> bool:
        raise NotImplementedError

    def _on_update(self, row: dict, old: Optional[dict]) -> bool:
        raise NotImplementedError


class OrderNotifier(_Notifier):
    """
    New-order and order-ready alerts.

    scope "kitchen" skips bar_only orders, "bar" keeps bar_only and dine_in,
    "all" keeps everything.
    """

    def __init__(self, stream=None, *, scope: str = SCOPE_ALL, **kwargs):
        if scope not in SCOPES:
            raise ValueError(f"Invalid scope: {scope}")
        super().__init__(stream, **kwargs)
        self.scope = scope

    def _on_insert(self, row: dict, context=None) -> bool:
        if self._seen(row):
            return False
        if not order_in_scope(row.get("order_type"), self.scope):
            return False

        self._count()
        self._tone()
        self._toast(Toast(
            title="🔔 New Order!",
            description=f"Order {row.get('order_number')} has been placed.",
        ))
        return True

    def _on_update(self, row: dict, old: Optional[dict]) -> bool:
        old_status = (old or {}).get("status")
        if row.get("status") != STATUS_READY or old_status == STATUS_READY:
            return False

        self._tone()
        self._toast(Toast(
            title="✅ Order Ready!",
            description=f"Order {row.get('order_number')} is ready for pickup.",
        ))
        return True


class TransferNotifier(_Notifier):
    """
    Incoming transfer requests for the viewer's assigned bar, and the outcome
    of transfers once responded to.

    assigned_bar_id may be a value or a zero-argument callable; it is read on
    every event so a reassignment takes effect without resubscribing.
    fetch_details(transfer_id) returns the transfer with source_bar and
    inventory_item names joined; failures fall back to generic labels.
    on_invalidate(key) is called for each cached view that is now stale.
    """

    def __init__(
        self,
        stream=None,
        *,
        assigned_bar_id=None,
        fetch_details: Optional[Callable[[Any], Optional[dict]]] = None,
        on_invalidate: Optional[Callable[[tuple], Any]] = None,
        **kwargs,
    ):
        super().__init__(stream, **kwargs)
        self._assigned_bar_id = assigned_bar_id
        self.fetch_details = fetch_details
        self.on_invalidate = on_invalidate

    @property
    def assigned_bar_id(self):
        if callable(self._assigned_bar_id):
            return self._assigned_bar_id()
        return self._assigned_bar_id

    def _invalidate(self, key: tuple) -> None:
        if self.on_invalidate is not None:
            self.on_invalidate(key)

    def _details(self, transfer_id) -> dict:
        if self.fetch_details is None:
            return {}
        try:
            return self.fetch_details(transfer_id) or {}
        except Exception:
            logger.info("Could not load transfer %s details", transfer_id, exc_info=True)
            return {}

    def _wants(self, row: dict) -> bool:
        bar_id = self.assigned_bar_id
        if bar_id is None or row.get("destination_bar_id") != bar_id:
            return False
        return row.get("status") == "pending"

    def _prepare(self, change: ChangeEvent):
        row = change.new or {}
        if change.type != EVENT_INSERT or row.get("id") == self.last_seen_id or not self._wants(row):
            return None
        return self._details(row.get("id"))

    def _on_insert(self, row: dict, context=None) -> bool:
        if self._seen(row):
            return False
        if not self._wants(row):
            return False

        bar_id = self.assigned_bar_id
        details = context or {}
        item_name = (details.get("inventory_item") or {}).get("name") or "item"
        source_bar = (details.get("source_bar") or {}).get("name") or "another bar"
        quantity = row.get("quantity")
        if isinstance(quantity, float) and quantity.is_integer():
            quantity = int(quantity)

        self._count()
        self._tone()
        self._toast(Toast(
            title="📦 New Transfer Request!",
            description=f"{source_bar} is requesting to transfer {quantity} {item_name} to your bar.",
            duration=8.0,
        ))
        self._invalidate(pending_transfers_key(bar_id))
        self._invalidate(TRANSFERS_KEY)
        return True

    def _on_update(self, row: dict, old: Optional[dict]) -> bool:
        status = row.get("status")
        if status == (old or {}).get("status"):
            return False

        alerted = False
        if status in ("completed", "accepted"):
            self._toast(Toast(
                title="✅ Transfer Accepted!",
                description="Your transfer request has been accepted.",
            ))
            self._tone()
            alerted = True
        elif status == "rejected":
            self._toast(Toast(
                title="❌ Transfer Rejected",
                description="Your transfer request was rejected.",
                variant="destructive",
            ))
            alerted = True

        bar_id = self.assigned_bar_id
        if bar_id is not None:
            self._invalidate(pending_transfers_key(bar_id))
        self._invalidate(TRANSFERS_KEY)
        self._invalidate(BARS_KEY)
        return alerted

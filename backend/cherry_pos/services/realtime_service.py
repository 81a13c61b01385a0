# Overview: Service-layer operations for the change feed; publishes committed row changes to subscribers.

"""
In-process change feed for the orders and bar_to_bar_transfers tables.

Inserts and status-bearing updates are captured from SQLAlchemy session events
during flush and published only after the transaction commits. A rollback
discards whatever the session collected, so subscribers never see changes
that did not persist.

Each subscriber owns a bounded queue. Publishing never blocks: when a queue
is full its oldest event is dropped.
"""
from __future__ import annotations

import json
import logging
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from ..time_utils import to_utc_z


logger = logging.getLogger(__name__)

EVENT_INSERT = "INSERT"
EVENT_UPDATE = "UPDATE"

ORDERS_TABLE = "orders"
TRANSFERS_TABLE = "bar_to_bar_transfers"
STREAMED_TABLES = (ORDERS_TABLE, TRANSFERS_TABLE)

_PENDING_KEY = "cherry_pos_pending_changes"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    type: str
    new: dict
    old: dict | None = None

    def to_dict(self) -> dict:
        return {"table": self.table, "type": self.type, "new": self.new, "old": self.old}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> "ChangeEvent":
        return cls(
            table=data["table"],
            type=data["type"],
            new=data.get("new") or {},
            old=data.get("old"),
        )


class Subscription:
    """
    A disposable handle on one table's change events.

    Iterate it (blocking) or poll with get(timeout). After close() no further
    events are delivered and iteration stops.
    """

    def __init__(self, feed: "ChangeFeed", table: str, maxsize: int):
        self.table = table
        self._feed = feed
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self._closed = threading.Event()
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def offer(self, change: ChangeEvent) -> None:
        if self.closed:
            return
        with self._lock:
            try:
                self._queue.put_nowait(change)
            except queue.Full:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    pass
                self._queue.put_nowait(change)
                self.dropped += 1

    def get(self, timeout: float | None = None) -> ChangeEvent | None:
        """Next event, or None on timeout or once the subscription is closed."""
        if self.closed:
            return None
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is None or self.closed:
            return None
        return item

    def __iter__(self):
        while not self.closed:
            item = self.get()
            if item is None:
                if self.closed:
                    return
                continue
            yield item

    def close(self) -> None:
        if self.closed:
            return
        self._closed.set()
        self._feed._remove(self)
        # Wake a consumer blocked in get()
        try:
            self._queue.put_nowait(None)
        except queue.Full:
            pass

    dispose = close

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


@dataclass
class ChangeFeed:
    queue_size: int = 256
    _subscribers: dict = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def init_app(self, app) -> None:
        self.queue_size = int(app.config.get("REALTIME_QUEUE_SIZE", self.queue_size))
        app.extensions["change_feed"] = self

    def subscribe(self, table: str) -> Subscription:
        if table not in STREAMED_TABLES:
            raise ValueError(f"Unknown change stream: {table}")
        subscription = Subscription(self, table, self.queue_size)
        with self._lock:
            self._subscribers.setdefault(table, []).append(subscription)
        return subscription

    def publish(self, change: ChangeEvent) -> int:
        """Deliver an event to every open subscription on its table. Returns the number reached."""
        with self._lock:
            targets = list(self._subscribers.get(change.table, ()))
        for subscription in targets:
            subscription.offer(change)
        return len(targets)

    def subscriber_count(self, table: str) -> int:
        with self._lock:
            return len(self._subscribers.get(table, ()))

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.table, [])
            if subscription in subscribers:
                subscribers.remove(subscription)


def _tracked_models():
    from ..models import BarToBarTransfer, Order

    return {Order: ORDERS_TABLE, BarToBarTransfer: TRANSFERS_TABLE}


def _previous_row(obj, snapshot: dict) -> dict | None:
    """Row as it was before this flush, or None when nothing tracked changed."""
    state = inspect(obj)
    old = dict(snapshot)
    changed = False
    for attr in state.mapper.column_attrs:
        history = state.attrs[attr.key].history
        if not history.deleted or attr.key not in snapshot:
            continue
        changed = True
        old[attr.key] = _serialize_value(history.deleted[0])
    return old if changed else None


def _serialize_value(value):
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def _collect_changes(session, flush_context) -> None:
    tracked = _tracked_models()
    pending = session.info.setdefault(_PENDING_KEY, [])

    for obj in session.new:
        table = tracked.get(type(obj))
        if table:
            pending.append(ChangeEvent(table=table, type=EVENT_INSERT, new=obj.to_dict()))

    for obj in session.dirty:
        table = tracked.get(type(obj))
        if not table or not session.is_modified(obj, include_collections=False):
            continue
        new = obj.to_dict()
        old = _previous_row(obj, new)
        if old is not None:
            pending.append(ChangeEvent(table=table, type=EVENT_UPDATE, new=new, old=old))


def _make_publisher(feed: ChangeFeed):
    def _publish_committed(session) -> None:
        changes = session.info.pop(_PENDING_KEY, None)
        if not changes:
            return
        for change in changes:
            delivered = feed.publish(change)
            logger.debug("Published %s on %s to %d subscriber(s)", change.type, change.table, delivered)

    return _publish_committed


def _discard_pending(session) -> None:
    session.info.pop(_PENDING_KEY, None)


def register_listeners(feed: ChangeFeed) -> None:
    """Attach the change capture to every SQLAlchemy session. Safe to call repeatedly."""
    if getattr(feed, "_listeners_registered", False):
        return
    event.listen(Session, "after_flush", _collect_changes)
    event.listen(Session, "after_commit", _make_publisher(feed))
    event.listen(Session, "after_rollback", _discard_pending)
    event.listen(Session, "after_soft_rollback", lambda session, previous_transaction: _discard_pending(session))
    feed._listeners_registered = True

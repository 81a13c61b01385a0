# Overview: Service-layer operations for orders; encapsulates business logic and database work.

"""
POS orders.

LIFECYCLE:
1. pending: placed at the POS
2. preparing: picked up by the kitchen or bar
3. ready: waiting for pickup (raises the "Order Ready" alert)
4. completed: handed over
cancelled is reachable from pending, preparing and ready.

Order numbers are ORD-YYMMDD-NNNN, sequential within the UTC day.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation

from ..extensions import db
from ..models import InventoryItem, MenuItem, Order, OrderItem
from ..time_utils import utcnow
from .concurrency import lock_for_update
from .inventory_service import MOVEMENT_OUT, _record_movement
from .payment_service import PAYMENT_METHODS, record_payment


ORDER_TYPES = ("dine_in", "takeaway", "delivery", "bar_only")

STATUS_PENDING = "pending"
STATUS_PREPARING = "preparing"
STATUS_READY = "ready"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
ORDER_STATUSES = (STATUS_PENDING, STATUS_PREPARING, STATUS_READY, STATUS_COMPLETED, STATUS_CANCELLED)
ACTIVE_STATUSES = (STATUS_PENDING, STATUS_PREPARING)

ALLOWED_TRANSITIONS = {
    STATUS_PENDING: {STATUS_PREPARING, STATUS_CANCELLED},
    STATUS_PREPARING: {STATUS_READY, STATUS_CANCELLED},
    STATUS_READY: {STATUS_COMPLETED, STATUS_CANCELLED},
    STATUS_COMPLETED: set(),
    STATUS_CANCELLED: set(),
}

SCOPE_ALL = "all"
SCOPE_KITCHEN = "kitchen"
SCOPE_BAR = "bar"
SCOPES = (SCOPE_ALL, SCOPE_KITCHEN, SCOPE_BAR)


class OrderError(Exception):
    """Raised when order operations fail."""
    pass


def order_in_scope(order_type: str | None, scope: str) -> bool:
    """
    Kitchen displays skip bar_only orders; bar displays show only bar_only
    and dine_in orders; "all" shows everything.
    """
    if scope == SCOPE_KITCHEN:
        return order_type != "bar_only"
    if scope == SCOPE_BAR:
        return order_type in ("bar_only", "dine_in")
    return True


def order_number_prefix(day: date) -> str:
    return f"ORD-{day.strftime('%y%m%d')}-"


def next_order_number(now: datetime | None = None) -> str:
    """Next free ORD-YYMMDD-NNNN for the day of now."""
    now = now or utcnow()
    prefix = order_number_prefix(now.date())
    latest = db.session.query(Order.order_number).filter(
        Order.order_number.like(f"{prefix}%")
    ).order_by(Order.order_number.desc()).first()

    sequence = 1
    if latest:
        try:
            sequence = int(latest[0][len(prefix):]) + 1
        except ValueError:
            sequence = db.session.query(Order).filter(Order.order_number.like(f"{prefix}%")).count() + 1
    return f"{prefix}{sequence:04d}"


def _money(value, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise OrderError(f"{field} must be a number")
    if not amount.is_finite() or amount < 0:
        raise OrderError(f"{field} must be a non-negative number")
    return amount.quantize(Decimal("0.01"))


def _normalize_line(raw: dict, position: int) -> dict:
    if not isinstance(raw, dict):
        raise OrderError("Each item must be an object")

    menu_item = None
    menu_item_id = raw.get("menu_item_id")
    if menu_item_id is not None:
        menu_item = db.session.get(MenuItem, menu_item_id)
        if not menu_item or not menu_item.is_active:
            raise OrderError(f"Menu item {menu_item_id} not found")

    name = (raw.get("item_name") or raw.get("name") or (menu_item.name if menu_item else "") or "").strip()
    if not name:
        raise OrderError("Item name is required")

    quantity = raw.get("quantity")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise OrderError(f"Quantity for {name} must be a positive integer")

    price = raw.get("unit_price", raw.get("price"))
    if price is None and menu_item is not None:
        price = menu_item.price
    if price is None:
        raise OrderError(f"Price for {name} is required")
    unit_price = _money(price, "unit_price")

    return {
        "position": position,
        "menu_item": menu_item,
        "item_name": name,
        "quantity": quantity,
        "unit_price": unit_price,
        "total_price": unit_price * quantity,
        "notes": raw.get("notes"),
    }


def create_order(
    order_type: str,
    items: list[dict],
    table_number: str | None = None,
    notes: str | None = None,
    created_by: int | None = None,
    payment_method: str | None = None,
) -> Order:
    """
    Place an order (status: pending).

    Lines that reference a menu item with track_inventory deduct the linked
    inventory item with an "out" movement. With payment_method, a completed
    payment for the full total is recorded. Everything commits together.

    Raises:
        OrderError: invalid type, items or payment method, or insufficient stock
    """
    if order_type not in ORDER_TYPES:
        raise OrderError(f"Invalid order type: {order_type}")
    if payment_method is not None and payment_method not in PAYMENT_METHODS:
        raise OrderError(f"Invalid payment method: {payment_method}")
    if not items:
        raise OrderError("Order must contain at least one item")

    lines = [_normalize_line(raw, position) for position, raw in enumerate(items)]

    required: dict[int, Decimal] = {}
    for line in lines:
        menu_item = line["menu_item"]
        if menu_item is not None and menu_item.track_inventory and menu_item.inventory_item_id:
            required[menu_item.inventory_item_id] = (
                required.get(menu_item.inventory_item_id, Decimal("0")) + line["quantity"]
            )

    stock_rows: dict[int, InventoryItem] = {}
    for inventory_item_id, quantity in required.items():
        row = lock_for_update(db.session.query(InventoryItem).filter_by(id=inventory_item_id)).first()
        if not row:
            raise OrderError(f"Inventory item {inventory_item_id} not found")
        if Decimal(str(row.current_stock or 0)) < quantity:
            raise OrderError(f'Insufficient stock for "{row.name}". Available: {float(row.current_stock or 0):g}')
        stock_rows[inventory_item_id] = row

    subtotal = sum((line["total_price"] for line in lines), Decimal("0"))

    order = Order(
        order_number=next_order_number(),
        order_type=order_type,
        table_number=(str(table_number).strip() or None) if table_number is not None else None,
        status=STATUS_PENDING,
        subtotal=subtotal,
        total_amount=subtotal,
        notes=notes,
        created_by=created_by,
    )
    for line in lines:
        order.items.append(OrderItem(
            position=line["position"],
            menu_item_id=line["menu_item"].id if line["menu_item"] is not None else None,
            item_name=line["item_name"],
            quantity=line["quantity"],
            unit_price=line["unit_price"],
            total_price=line["total_price"],
            notes=line["notes"],
        ))

    db.session.add(order)
    db.session.flush()

    for inventory_item_id, quantity in required.items():
        _record_movement(
            stock_rows[inventory_item_id],
            MOVEMENT_OUT,
            quantity,
            notes=f"Sold via POS - Order {order.order_number}",
            reference=order.order_number,
            created_by=created_by,
        )

    if payment_method is not None and subtotal > 0:
        record_payment(order, payment_method, subtotal, created_by=created_by)

    db.session.commit()
    return order


def get_order(order_id: int) -> Order | None:
    return db.session.get(Order, order_id)


def update_status(order_id: int, status: str) -> Order:
    """Move an order along the lifecycle. Same-status updates are rejected."""
    if status not in ORDER_STATUSES:
        raise OrderError(f"Invalid status: {status}")

    order = get_order(order_id)
    if not order:
        raise OrderError("Order not found")

    if status not in ALLOWED_TRANSITIONS.get(order.status, set()):
        raise OrderError(f"Cannot change order from {order.status} to {status}")

    order.status = status
    db.session.commit()
    return order


def list_orders(
    status: str | None = None,
    order_type: str | None = None,
    search: str | None = None,
    day: date | None = None,
    limit: int = 200,
) -> list[Order]:
    """Newest first. day filters on the UTC calendar day of created_at."""
    query = db.session.query(Order)
    if status:
        query = query.filter(Order.status == status)
    if order_type:
        query = query.filter(Order.order_type == order_type)
    if search:
        query = query.filter(Order.order_number.ilike(f"%{search.strip()}%"))
    if day is not None:
        start = datetime.combine(day, time.min)
        query = query.filter(Order.created_at >= start, Order.created_at < start + timedelta(days=1))
    return query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()


def list_active_orders(scope: str = SCOPE_ALL) -> list[Order]:
    """Pending and preparing orders for a display, oldest first."""
    if scope not in SCOPES:
        raise OrderError(f"Invalid scope: {scope}")
    orders = db.session.query(Order).filter(
        Order.status.in_(ACTIVE_STATUSES)
    ).order_by(Order.created_at.asc(), Order.id.asc()).all()
    return [order for order in orders if order_in_scope(order.order_type, scope)]


def list_orders_in_range(
    start: datetime,
    end: datetime,
    status: str | None = None,
    created_by: int | None = None,
) -> list[Order]:
    """
    Orders created in [start, end], newest first. Both bounds are naive UTC.

    Raises:
        OrderError: end before start, or an unknown status
    """
    if end < start:
        raise OrderError("end must not be before start")
    if status is not None and status not in ORDER_STATUSES:
        raise OrderError(f"Invalid status: {status}")

    query = db.session.query(Order).filter(Order.created_at >= start, Order.created_at <= end)
    if status:
        query = query.filter(Order.status == status)
    if created_by is not None:
        query = query.filter(Order.created_by == created_by)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

"""
Central store inventory and its stock movement ledger.

Every change to InventoryItem.current_stock writes one StockMovement row in
the same transaction:

- in:         new = previous + quantity
- out:        new = max(0, previous - quantity)
- adjustment: new = target level, quantity = |new - previous|
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation

from ..extensions import db
from ..models import InventoryItem, StockMovement
from .concurrency import lock_for_update


MOVEMENT_IN = "in"
MOVEMENT_OUT = "out"
MOVEMENT_ADJUSTMENT = "adjustment"
MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_ADJUSTMENT)

STOCK_OK = "ok"
STOCK_LOW = "low"
STOCK_OUT = "out"


class InventoryError(Exception):
    """Raised when inventory operations fail."""
    pass


def to_quantity(value, *, field: str = "quantity", allow_zero: bool = False) -> Decimal:
    """Parse a stock quantity. Negative values are always rejected."""
    if isinstance(value, bool):
        raise InventoryError(f"{field} must be a number")
    try:
        quantity = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InventoryError(f"{field} must be a number")
    if not quantity.is_finite():
        raise InventoryError(f"{field} must be a number")
    if quantity < 0 or (quantity == 0 and not allow_zero):
        raise InventoryError(f"{field} must be {'non-negative' if allow_zero else 'positive'}")
    return quantity


def stock_status(current_stock, min_stock_level) -> str:
    """out when stock <= 0; low when 0 < stock <= minimum; ok otherwise."""
    current = Decimal(str(current_stock or 0))
    minimum = Decimal(str(min_stock_level or 0))
    if current <= 0:
        return STOCK_OUT
    if current <= minimum:
        return STOCK_LOW
    return STOCK_OK


def apply_movement(previous, movement_type: str, quantity) -> tuple[Decimal, Decimal]:
    """
    Compute (new_stock, recorded_quantity) for a movement.

    For adjustment, quantity is the target level and the recorded quantity is
    the absolute difference.
    """
    previous = Decimal(str(previous or 0))
    quantity = Decimal(str(quantity))
    if movement_type == MOVEMENT_IN:
        return previous + quantity, quantity
    if movement_type == MOVEMENT_OUT:
        return max(Decimal("0"), previous - quantity), quantity
    if movement_type == MOVEMENT_ADJUSTMENT:
        return quantity, abs(quantity - previous)
    raise InventoryError(f"Unknown movement type: {movement_type}")


def get_item(item_id: int) -> InventoryItem | None:
    return db.session.get(InventoryItem, item_id)


def list_items(active_only: bool = False, low_stock: bool = False) -> list[InventoryItem]:
    query = db.session.query(InventoryItem)
    if active_only or low_stock:
        query = query.filter(InventoryItem.is_active.is_(True))
    if low_stock:
        query = query.filter(InventoryItem.current_stock <= InventoryItem.min_stock_level)
    return query.order_by(InventoryItem.name.asc(), InventoryItem.id.asc()).all()


def create_item(
    name: str,
    unit: str = "pcs",
    category: str | None = None,
    current_stock=0,
    min_stock_level=0,
    cost_per_unit=None,
    created_by: int | None = None,
) -> InventoryItem:
    """
    Create an inventory item.

    A non-zero opening stock is recorded as an "in" movement.
    """
    name = (name or "").strip()
    if not name:
        raise InventoryError("Name is required")

    opening = to_quantity(current_stock, field="current_stock", allow_zero=True)
    item = InventoryItem(
        name=name,
        unit=(unit or "pcs").strip() or "pcs",
        category=(category or "").strip() or None,
        current_stock=Decimal("0"),
        min_stock_level=to_quantity(min_stock_level, field="min_stock_level", allow_zero=True),
        cost_per_unit=to_quantity(cost_per_unit, field="cost_per_unit", allow_zero=True) if cost_per_unit is not None else None,
        is_active=True,
    )
    db.session.add(item)
    db.session.flush()

    if opening > 0:
        _record_movement(item, MOVEMENT_IN, opening, notes="Opening stock", created_by=created_by)

    db.session.commit()
    return item


def update_item(item_id: int, **fields) -> InventoryItem:
    """Edit descriptive fields. Stock levels change only through movements."""
    item = get_item(item_id)
    if not item:
        raise InventoryError("Inventory item not found")

    if "name" in fields and fields["name"] is not None:
        name = str(fields["name"]).strip()
        if not name:
            raise InventoryError("Name is required")
        item.name = name
    if "unit" in fields and fields["unit"]:
        item.unit = str(fields["unit"]).strip()
    if "category" in fields:
        item.category = (fields["category"] or "").strip() or None
    if "min_stock_level" in fields and fields["min_stock_level"] is not None:
        item.min_stock_level = to_quantity(fields["min_stock_level"], field="min_stock_level", allow_zero=True)
    if "cost_per_unit" in fields:
        value = fields["cost_per_unit"]
        item.cost_per_unit = to_quantity(value, field="cost_per_unit", allow_zero=True) if value is not None else None
    if "is_active" in fields and fields["is_active"] is not None:
        item.is_active = bool(fields["is_active"])

    db.session.commit()
    return item


def deactivate_item(item_id: int) -> InventoryItem:
    return update_item(item_id, is_active=False)


def _record_movement(
    item: InventoryItem,
    movement_type: str,
    quantity,
    notes: str | None = None,
    reference: str | None = None,
    created_by: int | None = None,
) -> StockMovement:
    previous = Decimal(str(item.current_stock or 0))
    new_stock, recorded = apply_movement(previous, movement_type, quantity)
    item.current_stock = new_stock

    movement = StockMovement(
        inventory_item_id=item.id,
        movement_type=movement_type,
        quantity=recorded,
        previous_stock=previous,
        new_stock=new_stock,
        notes=notes,
        reference=reference,
        created_by=created_by,
    )
    db.session.add(movement)
    return movement


def record_movement(
    item_id: int,
    movement_type: str,
    quantity,
    notes: str | None = None,
    reference: str | None = None,
    created_by: int | None = None,
    commit: bool = True,
) -> StockMovement:
    """
    Apply one movement to an item under a row lock.

    With commit=False the caller owns the transaction (order creation,
    store-to-bar transfer).
    """
    if movement_type not in MOVEMENT_TYPES:
        raise InventoryError(f"Unknown movement type: {movement_type}")

    quantity = to_quantity(quantity, allow_zero=movement_type == MOVEMENT_ADJUSTMENT)

    item = lock_for_update(db.session.query(InventoryItem).filter_by(id=item_id)).first()
    if not item:
        raise InventoryError("Inventory item not found")

    movement = _record_movement(item, movement_type, quantity, notes, reference, created_by)

    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return movement


def add_stock(item_id: int, quantity, notes: str | None = None, created_by: int | None = None) -> StockMovement:
    return record_movement(item_id, MOVEMENT_IN, quantity, notes=notes, created_by=created_by)


def remove_stock(item_id: int, quantity, notes: str | None = None, created_by: int | None = None) -> StockMovement:
    return record_movement(item_id, MOVEMENT_OUT, quantity, notes=notes, created_by=created_by)


def adjust_stock(item_id: int, new_stock, notes: str | None = None, created_by: int | None = None) -> StockMovement:
    return record_movement(item_id, MOVEMENT_ADJUSTMENT, new_stock, notes=notes, created_by=created_by)


def list_movements(item_id: int | None = None, limit: int = 200) -> list[StockMovement]:
    query = db.session.query(StockMovement)
    if item_id is not None:
        query = query.filter(StockMovement.inventory_item_id == item_id)
    return query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).limit(limit).all()

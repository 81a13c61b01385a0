# Overview: Service-layer operations for bars and stock transfers; encapsulates business logic and database work.

"""
Bars, bar inventory and stock transfers into bars.

Two kinds of transfer share the bar_to_bar_transfers table:

- Store to bar (source_bar_id is None): central stock is deducted with an
  "out" movement, the bar is credited, and the transfer is recorded as
  completed in the same transaction.
- Bar to bar: the source bar is deducted immediately and the transfer waits
  as pending. The destination accepts (stock credited, completed) or rejects
  (stock returned to the source, rejected). Only pending transfers can be
  responded to.
"""
from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..models import Bar, BarInventory, BarToBarTransfer, InventoryItem
from ..time_utils import utcnow
from .concurrency import lock_for_update
from .inventory_service import MOVEMENT_OUT, InventoryError, _record_movement, to_quantity


# Transfer status constants
TRANSFER_STATUS_PENDING = "pending"
TRANSFER_STATUS_COMPLETED = "completed"
TRANSFER_STATUS_REJECTED = "rejected"

RESPONSE_ACCEPT = "accept"
RESPONSE_REJECT = "reject"


class TransferError(Exception):
    """Raised when bar or transfer operations fail."""
    pass


def _quantity(value) -> Decimal:
    try:
        return to_quantity(value)
    except InventoryError as e:
        raise TransferError(str(e)) from e


# Bars

def get_bar(bar_id: int) -> Bar | None:
    if bar_id is None:
        return None
    return db.session.get(Bar, bar_id)


def list_bars(active_only: bool = False) -> list[Bar]:
    query = db.session.query(Bar)
    if active_only:
        query = query.filter(Bar.is_active.is_(True))
    return query.order_by(Bar.name.asc()).all()


def create_bar(name: str, description: str | None = None) -> Bar:
    name = (name or "").strip()
    if not name:
        raise TransferError("Bar name is required")
    if db.session.query(Bar).filter(db.func.lower(Bar.name) == name.lower()).first():
        raise TransferError("A bar with this name already exists")

    bar = Bar(name=name, description=(description or "").strip() or None, is_active=True)
    db.session.add(bar)
    db.session.commit()
    return bar


def update_bar(bar_id: int, **fields) -> Bar:
    bar = get_bar(bar_id)
    if not bar:
        raise TransferError("Bar not found")

    if "name" in fields and fields["name"] is not None:
        name = str(fields["name"]).strip()
        if not name:
            raise TransferError("Bar name is required")
        clash = db.session.query(Bar).filter(
            db.func.lower(Bar.name) == name.lower(),
            Bar.id != bar.id,
        ).first()
        if clash:
            raise TransferError("A bar with this name already exists")
        bar.name = name
    if "description" in fields:
        bar.description = (fields["description"] or "").strip() or None
    if "is_active" in fields and fields["is_active"] is not None:
        bar.is_active = bool(fields["is_active"])

    db.session.commit()
    return bar


def delete_bar(bar_id: int) -> None:
    """Delete a bar that holds no stock and has no transfer history. Other bars can only be deactivated."""
    bar = get_bar(bar_id)
    if not bar:
        raise TransferError("Bar not found")

    has_history = db.session.query(BarToBarTransfer).filter(
        db.or_(
            BarToBarTransfer.source_bar_id == bar_id,
            BarToBarTransfer.destination_bar_id == bar_id,
        )
    ).first() is not None
    has_stock = db.session.query(BarInventory).filter(
        BarInventory.bar_id == bar_id,
        BarInventory.current_stock > 0,
    ).first() is not None

    if has_history or has_stock:
        raise TransferError("Bar has stock or transfer history; deactivate it instead")

    db.session.query(BarInventory).filter_by(bar_id=bar_id).delete(synchronize_session=False)
    db.session.delete(bar)
    db.session.commit()


# Bar inventory

def list_bar_inventory(bar_id: int) -> list[BarInventory]:
    return db.session.query(BarInventory).filter_by(bar_id=bar_id).order_by(BarInventory.id.asc()).all()


def get_bar_stock(bar_id: int, inventory_item_id: int) -> Decimal:
    row = db.session.query(BarInventory).filter_by(bar_id=bar_id, inventory_item_id=inventory_item_id).first()
    return Decimal(str(row.current_stock)) if row else Decimal("0")


def _bar_inventory_row(bar_id: int, inventory_item_id: int, create: bool) -> BarInventory | None:
    row = lock_for_update(
        db.session.query(BarInventory).filter_by(bar_id=bar_id, inventory_item_id=inventory_item_id)
    ).first()
    if row is None and create:
        row = BarInventory(bar_id=bar_id, inventory_item_id=inventory_item_id, current_stock=Decimal("0"))
        db.session.add(row)
        db.session.flush()
    return row


def _active_bar(bar_id: int, label: str) -> Bar:
    bar = get_bar(bar_id)
    if not bar:
        raise TransferError(f"{label} bar not found")
    if not bar.is_active:
        raise TransferError(f"{label} bar is not active")
    return bar


# Transfers

def transfer_store_to_bar(
    bar_id: int,
    inventory_item_id: int,
    quantity,
    notes: str | None = None,
    transferred_by: int | None = None,
) -> BarToBarTransfer:
    quantity = _quantity(quantity)
    _active_bar(bar_id, "Destination")

    item = lock_for_update(db.session.query(InventoryItem).filter_by(id=inventory_item_id)).first()
    if not item:
        raise TransferError("Inventory item not found")
    available = Decimal(str(item.current_stock or 0))
    if available < quantity:
        raise TransferError(f"Insufficient store stock. Available: {float(available):g}")

    transfer = BarToBarTransfer(
        source_bar_id=None,
        destination_bar_id=bar_id,
        inventory_item_id=inventory_item_id,
        quantity=quantity,
        status=TRANSFER_STATUS_COMPLETED,
        notes=notes,
        requested_by=transferred_by,
        responded_by=transferred_by,
        responded_at=utcnow(),
    )
    db.session.add(transfer)
    db.session.flush()

    _record_movement(
        item,
        MOVEMENT_OUT,
        quantity,
        notes=notes or "Transfer to bar",
        reference=f"TRANSFER-{transfer.id}",
        created_by=transferred_by,
    )
    row = _bar_inventory_row(bar_id, inventory_item_id, create=True)
    row.current_stock = Decimal(str(row.current_stock or 0)) + quantity

    db.session.commit()
    return transfer


def create_bar_transfer(
    source_bar_id: int,
    destination_bar_id: int,
    inventory_item_id: int,
    quantity,
    notes: str | None = None,
    requested_by: int | None = None,
) -> BarToBarTransfer:
    """
    Request stock from one bar to another (status: pending).

    The source bar is deducted now so the stock can't be sold twice while the
    request waits.

    Raises:
        TransferError: same bar, unknown/inactive bar or item, insufficient stock
    """
    quantity = _quantity(quantity)
    if source_bar_id == destination_bar_id:
        raise TransferError("Cannot transfer to the same bar")

    _active_bar(source_bar_id, "Source")
    _active_bar(destination_bar_id, "Destination")
    if inventory_item_id is None or not db.session.get(InventoryItem, inventory_item_id):
        raise TransferError("Inventory item not found")

    source_row = _bar_inventory_row(source_bar_id, inventory_item_id, create=False)
    available = Decimal(str(source_row.current_stock)) if source_row else Decimal("0")
    if available < quantity:
        raise TransferError(f"Insufficient stock at source bar. Available: {float(available):g}")

    source_row.current_stock = available - quantity

    transfer = BarToBarTransfer(
        source_bar_id=source_bar_id,
        destination_bar_id=destination_bar_id,
        inventory_item_id=inventory_item_id,
        quantity=quantity,
        status=TRANSFER_STATUS_PENDING,
        notes=notes,
        requested_by=requested_by,
    )
    db.session.add(transfer)
    db.session.commit()
    return transfer


def respond_to_transfer(transfer_id: int, response: str, responded_by: int | None = None) -> BarToBarTransfer:
    """Accept or reject a pending bar-to-bar transfer."""
    if response not in (RESPONSE_ACCEPT, RESPONSE_REJECT):
        raise TransferError(f"Invalid response: {response}")

    transfer = lock_for_update(db.session.query(BarToBarTransfer).filter_by(id=transfer_id)).first()
    if not transfer:
        raise TransferError("Transfer not found")
    if transfer.status != TRANSFER_STATUS_PENDING:
        raise TransferError(f"Transfer is already {transfer.status}")

    quantity = Decimal(str(transfer.quantity))
    if response == RESPONSE_ACCEPT:
        row = _bar_inventory_row(transfer.destination_bar_id, transfer.inventory_item_id, create=True)
        transfer.status = TRANSFER_STATUS_COMPLETED
    else:
        row = _bar_inventory_row(transfer.source_bar_id, transfer.inventory_item_id, create=True)
        transfer.status = TRANSFER_STATUS_REJECTED
    row.current_stock = Decimal(str(row.current_stock or 0)) + quantity

    transfer.responded_by = responded_by
    transfer.responded_at = utcnow()

    db.session.commit()
    return transfer


def get_transfer(transfer_id: int) -> BarToBarTransfer | None:
    return db.session.get(BarToBarTransfer, transfer_id)


def list_pending_for_bar(bar_id: int) -> list[BarToBarTransfer]:
    return db.session.query(BarToBarTransfer).filter(
        BarToBarTransfer.destination_bar_id == bar_id,
        BarToBarTransfer.status == TRANSFER_STATUS_PENDING,
    ).order_by(BarToBarTransfer.created_at.desc(), BarToBarTransfer.id.desc()).all()


def list_transfers(bar_id: int | None = None, status: str | None = None, limit: int = 100) -> list[BarToBarTransfer]:
    query = db.session.query(BarToBarTransfer)
    if bar_id is not None:
        query = query.filter(db.or_(
            BarToBarTransfer.source_bar_id == bar_id,
            BarToBarTransfer.destination_bar_id == bar_id,
        ))
    if status:
        query = query.filter(BarToBarTransfer.status == status)
    return query.order_by(BarToBarTransfer.created_at.desc(), BarToBarTransfer.id.desc()).limit(limit).all()

from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class InventoryItem(db.Model):
    """
    Central store stock item.

    current_stock is a mutable level; every change to it is mirrored by an
    append-only StockMovement row.
    """
    __tablename__ = "inventory_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    category = db.Column(db.String(128), nullable=True)
    unit = db.Column(db.String(32), nullable=False, default="pcs")
    current_stock = db.Column(db.Numeric(12, 3), nullable=False, default=0)
    min_stock_level = db.Column(db.Numeric(12, 3), nullable=False, default=0)
    cost_per_unit = db.Column(db.Numeric(12, 2), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        from ..services.inventory_service import stock_status

        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "current_stock": float(self.current_stock or 0),
            "min_stock_level": float(self.min_stock_level or 0),
            "cost_per_unit": float(self.cost_per_unit) if self.cost_per_unit is not None else None,
            "is_active": self.is_active,
            "stock_status": stock_status(self.current_stock, self.min_stock_level),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockMovement(db.Model):
    """
    Immutable record of one change to an item's stock level.

    IMMUTABLE: Never update or delete. Append-only.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_item_created", "inventory_item_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=False, index=True)
    movement_type = db.Column(db.String(16), nullable=False)  # in, out, adjustment
    quantity = db.Column(db.Numeric(12, 3), nullable=False)
    previous_stock = db.Column(db.Numeric(12, 3), nullable=False)
    new_stock = db.Column(db.Numeric(12, 3), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    reference = db.Column(db.String(64), nullable=True)
    created_by = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    inventory_item = db.relationship("InventoryItem")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "inventory_item_id": self.inventory_item_id,
            "item_name": self.inventory_item.name if self.inventory_item else None,
            "movement_type": self.movement_type,
            "quantity": float(self.quantity),
            "previous_stock": float(self.previous_stock),
            "new_stock": float(self.new_stock),
            "notes": self.notes,
            "reference": self.reference,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class Supplier(db.Model):
    """Stock supplier. Never deleted; deactivated instead."""
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    contact_person = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_person": self.contact_person,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "notes": self.notes,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

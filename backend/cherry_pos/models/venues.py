from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Bar(db.Model):
    """A drink-service location with its own inventory ledger."""
    __tablename__ = "bars"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_bars_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class BarInventory(db.Model):
    """Stock level of one central inventory item held at one bar."""
    __tablename__ = "bar_inventory"
    __table_args__ = (
        db.UniqueConstraint("bar_id", "inventory_item_id", name="uq_bar_inventory_bar_item"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bar_id = db.Column(db.Integer, db.ForeignKey("bars.id"), nullable=False, index=True)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=False, index=True)
    current_stock = db.Column(db.Numeric(12, 3), nullable=False, default=0)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    bar = db.relationship("Bar")
    inventory_item = db.relationship("InventoryItem")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bar_id": self.bar_id,
            "inventory_item_id": self.inventory_item_id,
            "item_name": self.inventory_item.name if self.inventory_item else None,
            "unit": self.inventory_item.unit if self.inventory_item else None,
            "current_stock": float(self.current_stock or 0),
            "updated_at": to_utc_z(self.updated_at),
        }


class CashierBarAssignment(db.Model):
    """
    Which bar a cashier (administrator or staff account) currently serves.

    Exactly one of user_id / staff_user_id is set. Rows are never deleted,
    only deactivated; reassignment to a bar used before reactivates its row,
    so (identity, bar) is unique.
    """
    __tablename__ = "cashier_bar_assignments"
    __table_args__ = (
        db.UniqueConstraint("user_id", "bar_id", name="uq_assignments_user_bar"),
        db.UniqueConstraint("staff_user_id", "bar_id", name="uq_assignments_staff_bar"),
        db.Index("ix_assignments_active", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"), nullable=True, index=True)
    staff_user_id = db.Column(db.Integer, db.ForeignKey("staff_users.id"), nullable=True, index=True)
    bar_id = db.Column(db.Integer, db.ForeignKey("bars.id"), nullable=False, index=True)
    assigned_by = db.Column(db.Integer, db.ForeignKey("admin_users.id"), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    bar = db.relationship("Bar")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "staff_user_id": self.staff_user_id,
            "bar_id": self.bar_id,
            "bar": {"id": self.bar.id, "name": self.bar.name} if self.bar else None,
            "assigned_by": self.assigned_by,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class BarToBarTransfer(db.Model):
    """
    Stock moving into a bar, either from another bar or from the central store.

    source_bar_id=None means the central store. Bar-to-bar transfers start
    pending and wait for the destination to accept or reject them.
    """
    __tablename__ = "bar_to_bar_transfers"
    __table_args__ = (
        db.Index("ix_transfers_destination_status", "destination_bar_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    source_bar_id = db.Column(db.Integer, db.ForeignKey("bars.id"), nullable=True, index=True)
    destination_bar_id = db.Column(db.Integer, db.ForeignKey("bars.id"), nullable=False, index=True)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=False)
    quantity = db.Column(db.Numeric(12, 3), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    notes = db.Column(db.Text, nullable=True)

    requested_by = db.Column(db.Integer, nullable=True)
    responded_by = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    responded_at = db.Column(db.DateTime(timezone=True), nullable=True)

    source_bar = db.relationship("Bar", foreign_keys=[source_bar_id])
    destination_bar = db.relationship("Bar", foreign_keys=[destination_bar_id])
    inventory_item = db.relationship("InventoryItem")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source_bar_id": self.source_bar_id,
            "destination_bar_id": self.destination_bar_id,
            "inventory_item_id": self.inventory_item_id,
            "quantity": float(self.quantity) if self.quantity is not None else None,
            "status": self.status,
            "notes": self.notes,
            "requested_by": self.requested_by,
            "responded_by": self.responded_by,
            "created_at": to_utc_z(self.created_at),
            "responded_at": to_utc_z(self.responded_at),
        }

    def to_detail_dict(self) -> dict:
        data = self.to_dict()
        data["source_bar"] = {"name": self.source_bar.name} if self.source_bar else None
        data["destination_bar"] = {"name": self.destination_bar.name} if self.destination_bar else None
        data["inventory_item"] = (
            {"name": self.inventory_item.name, "unit": self.inventory_item.unit}
            if self.inventory_item else None
        )
        return data

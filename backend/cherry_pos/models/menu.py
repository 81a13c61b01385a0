from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class MenuCategory(db.Model):
    __tablename__ = "menu_categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, index=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class MenuItem(db.Model):
    """
    Sellable menu entry.

    inventory_item_id links items whose sale deducts central stock
    (track_inventory=True).
    """
    __tablename__ = "menu_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey("menu_categories.id"), nullable=True)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    cost_price = db.Column(db.Numeric(12, 2), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_available = db.Column(db.Boolean, nullable=False, default=True)
    track_inventory = db.Column(db.Boolean, nullable=False, default=False)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=True)
    image_url = db.Column(db.String(512), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    category = db.relationship("MenuCategory")
    inventory_item = db.relationship("InventoryItem")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category_id": self.category_id,
            "price": float(self.price or 0),
            "cost_price": float(self.cost_price) if self.cost_price is not None else None,
            "is_active": self.is_active,
            "is_available": self.is_available,
            "track_inventory": self.track_inventory,
            "inventory_item_id": self.inventory_item_id,
            "image_url": self.image_url,
            "category": {"name": self.category.name} if self.category else None,
            "inventory_item": {
                "id": self.inventory_item.id,
                "current_stock": float(self.inventory_item.current_stock or 0),
                "min_stock_level": float(self.inventory_item.min_stock_level or 0),
                "unit": self.inventory_item.unit,
            } if self.inventory_item else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

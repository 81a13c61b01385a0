# Overview: Service-layer operations for the menu; categories and sellable items.

"""
Menu categories and items.

An item with track_inventory=True must be linked to an inventory item; each
sale of it deducts central stock (see order_service.create_order). Items
that already appear on orders are never deleted, only deactivated, so order
history keeps its menu references.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation

from ..extensions import db
from ..models import InventoryItem, MenuCategory, MenuItem, OrderItem


class MenuError(Exception):
    """Raised when menu operations fail."""
    pass


def _price(value, field: str) -> Decimal:
    if isinstance(value, bool):
        raise MenuError(f"{field} must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise MenuError(f"{field} must be a number")
    if not amount.is_finite() or amount < 0:
        raise MenuError(f"{field} must be a non-negative number")
    return amount.quantize(Decimal("0.01"))


def _name(value) -> str:
    name = str(value or "").strip()
    if not name:
        raise MenuError("Name is required")
    return name


def _category_id(value) -> int | None:
    if value in (None, ""):
        return None
    if not db.session.get(MenuCategory, value):
        raise MenuError("Menu category not found")
    return value


def _inventory_item_id(value) -> int | None:
    if value in (None, ""):
        return None
    if not db.session.get(InventoryItem, value):
        raise MenuError("Inventory item not found")
    return value


# -- categories --

def get_category(category_id: int) -> MenuCategory | None:
    return db.session.get(MenuCategory, category_id)


def list_categories(active_only: bool = False) -> list[MenuCategory]:
    query = db.session.query(MenuCategory)
    if active_only:
        query = query.filter(MenuCategory.is_active.is_(True))
    return query.order_by(MenuCategory.sort_order.asc(), MenuCategory.name.asc()).all()


def create_category(name: str, sort_order: int = 0, is_active: bool = True) -> MenuCategory:
    if isinstance(sort_order, bool) or not isinstance(sort_order, int):
        raise MenuError("sort_order must be an integer")
    category = MenuCategory(name=_name(name), sort_order=sort_order, is_active=bool(is_active))
    db.session.add(category)
    db.session.commit()
    return category


def update_category(category_id: int, **fields) -> MenuCategory:
    category = get_category(category_id)
    if not category:
        raise MenuError("Menu category not found")

    if "name" in fields:
        category.name = _name(fields["name"])
    if "sort_order" in fields and fields["sort_order"] is not None:
        sort_order = fields["sort_order"]
        if isinstance(sort_order, bool) or not isinstance(sort_order, int):
            raise MenuError("sort_order must be an integer")
        category.sort_order = sort_order
    if "is_active" in fields and fields["is_active"] is not None:
        category.is_active = bool(fields["is_active"])

    db.session.commit()
    return category


def delete_category(category_id: int) -> None:
    """Delete a category. Its items stay on the menu, uncategorised."""
    category = get_category(category_id)
    if not category:
        raise MenuError("Menu category not found")

    db.session.query(MenuItem).filter_by(category_id=category_id).update(
        {"category_id": None}, synchronize_session=False
    )
    db.session.delete(category)
    db.session.commit()


# -- items --

def get_item(item_id: int) -> MenuItem | None:
    return db.session.get(MenuItem, item_id)


def list_items(category_id: int | None = None, active_only: bool = False) -> list[MenuItem]:
    query = db.session.query(MenuItem)
    if category_id is not None:
        query = query.filter(MenuItem.category_id == category_id)
    if active_only:
        query = query.filter(MenuItem.is_active.is_(True))
    return query.order_by(MenuItem.name.asc(), MenuItem.id.asc()).all()


def count_active_items() -> int:
    return db.session.query(MenuItem).filter(MenuItem.is_active.is_(True)).count()


def create_item(
    name: str,
    price,
    description: str | None = None,
    category_id: int | None = None,
    cost_price=None,
    image_url: str | None = None,
    is_active: bool = True,
    is_available: bool = True,
    track_inventory: bool = False,
    inventory_item_id: int | None = None,
) -> MenuItem:
    """
    Raises:
        MenuError: missing name, bad price, unknown category or inventory
            item, or track_inventory without a linked inventory item
    """
    if price is None:
        raise MenuError("price is required")

    item = MenuItem(
        name=_name(name),
        description=(description or "").strip() or None,
        category_id=_category_id(category_id),
        price=_price(price, "price"),
        cost_price=_price(cost_price, "cost_price") if cost_price is not None else None,
        image_url=(image_url or "").strip() or None,
        is_active=bool(is_active),
        is_available=bool(is_available),
        track_inventory=bool(track_inventory),
        inventory_item_id=_inventory_item_id(inventory_item_id),
    )
    if item.track_inventory and item.inventory_item_id is None:
        raise MenuError("track_inventory requires an inventory item")

    db.session.add(item)
    db.session.commit()
    return item


def update_item(item_id: int, **fields) -> MenuItem:
    item = get_item(item_id)
    if not item:
        raise MenuError("Menu item not found")

    if "name" in fields:
        item.name = _name(fields["name"])
    if "description" in fields:
        item.description = (fields["description"] or "").strip() or None
    if "category_id" in fields:
        item.category_id = _category_id(fields["category_id"])
    if "price" in fields and fields["price"] is not None:
        item.price = _price(fields["price"], "price")
    if "cost_price" in fields:
        value = fields["cost_price"]
        item.cost_price = _price(value, "cost_price") if value is not None else None
    if "image_url" in fields:
        item.image_url = (fields["image_url"] or "").strip() or None
    if "inventory_item_id" in fields:
        item.inventory_item_id = _inventory_item_id(fields["inventory_item_id"])
    for flag in ("is_active", "is_available", "track_inventory"):
        if flag in fields and fields[flag] is not None:
            setattr(item, flag, bool(fields[flag]))

    if item.track_inventory and item.inventory_item_id is None:
        db.session.rollback()
        raise MenuError("track_inventory requires an inventory item")

    db.session.commit()
    return item


def delete_item(item_id: int) -> None:
    item = get_item(item_id)
    if not item:
        raise MenuError("Menu item not found")

    if db.session.query(OrderItem.id).filter_by(menu_item_id=item_id).first():
        raise MenuError("Menu item has order history; deactivate it instead")

    db.session.delete(item)
    db.session.commit()

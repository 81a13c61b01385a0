# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_role
from ..permissions import INVENTORY_WRITE_ROLES
from ..services import inventory_service
from ..services.inventory_service import InventoryError


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _flag(name: str) -> bool:
    return request.args.get(name, "").lower() in ("1", "true", "yes")


def _error_response(e: InventoryError):
    status = 404 if "not found" in str(e) else 400
    return jsonify({"error": str(e)}), status


@inventory_bp.get("/items")
@require_auth
def list_items_route():
    """Query: active=true, low_stock=true."""
    items = inventory_service.list_items(active_only=_flag("active"), low_stock=_flag("low_stock"))
    return jsonify({"items": [i.to_dict() for i in items]}), 200


@inventory_bp.get("/items/<int:item_id>")
@require_auth
def get_item_route(item_id: int):
    item = inventory_service.get_item(item_id)
    if not item:
        return jsonify({"error": "Inventory item not found"}), 404
    return jsonify({"item": item.to_dict()}), 200


@inventory_bp.post("/items")
@require_auth
@require_role(*INVENTORY_WRITE_ROLES)
def create_item_route():
    try:
        data = request.get_json(silent=True) or {}
        item = inventory_service.create_item(
            name=data.get("name"),
            unit=data.get("unit") or "pcs",
            category=data.get("category"),
            current_stock=data.get("current_stock", 0),
            min_stock_level=data.get("min_stock_level", 0),
            cost_per_unit=data.get("cost_per_unit"),
            created_by=g.current_identity.id,
        )
        return jsonify({"item": item.to_dict()}), 201

    except InventoryError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.patch("/items/<int:item_id>")
@require_auth
@require_role(*INVENTORY_WRITE_ROLES)
def update_item_route(item_id: int):
    try:
        data = request.get_json(silent=True) or {}
        fields = {
            k: data[k]
            for k in ("name", "unit", "category", "min_stock_level", "cost_per_unit", "is_active")
            if k in data
        }
        item = inventory_service.update_item(item_id, **fields)
        return jsonify({"item": item.to_dict()}), 200

    except InventoryError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.delete("/items/<int:item_id>")
@require_auth
@require_role(*INVENTORY_WRITE_ROLES)
def deactivate_item_route(item_id: int):
    """Items have movement history, so delete means deactivate."""
    try:
        item = inventory_service.deactivate_item(item_id)
        return jsonify({"item": item.to_dict()}), 200

    except InventoryError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to deactivate inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/items/<int:item_id>/movements")
@require_auth
@require_role(*INVENTORY_WRITE_ROLES)
def record_movement_route(item_id: int):
    """
    Record a stock movement.

    Request body:
    {"movement_type": "in" | "out", "quantity": 5, "notes": "..."}
    {"movement_type": "adjustment", "new_stock": 12, "notes": "..."}
    """
    try:
        data = request.get_json(silent=True) or {}
        movement_type = data.get("movement_type")
        quantity = data.get("new_stock") if movement_type == inventory_service.MOVEMENT_ADJUSTMENT else data.get("quantity")
        if quantity is None:
            return jsonify({"error": "quantity required"}), 400

        movement = inventory_service.record_movement(
            item_id,
            movement_type,
            quantity,
            notes=data.get("notes"),
            created_by=g.current_identity.id,
        )
        return jsonify({"movement": movement.to_dict(), "item": movement.inventory_item.to_dict()}), 201

    except InventoryError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record stock movement")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/movements")
@require_auth
def list_movements_route():
    item_id = request.args.get("item_id", type=int)
    movements = inventory_service.list_movements(item_id=item_id)
    return jsonify({"movements": [m.to_dict() for m in movements]}), 200

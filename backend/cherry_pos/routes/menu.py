# Overview: Flask API routes for menu categories and items; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_role
from ..permissions import MENU_WRITE_ROLES
from ..services import menu_service
from ..services.menu_service import MenuError


menu_bp = Blueprint("menu", __name__, url_prefix="/api/menu")

CATEGORY_FIELDS = ("name", "sort_order", "is_active")
ITEM_FIELDS = (
    "name", "description", "price", "cost_price", "category_id", "image_url",
    "is_active", "is_available", "inventory_item_id", "track_inventory",
)


def _flag(name: str) -> bool:
    return request.args.get(name, "").lower() in ("1", "true", "yes")


def _error_response(e: MenuError):
    status = 404 if "not found" in str(e) else 400
    return jsonify({"error": str(e)}), status


# -- categories --

@menu_bp.get("/categories")
@require_auth
def list_categories_route():
    """Query: active_only=true."""
    categories = menu_service.list_categories(active_only=_flag("active_only"))
    return jsonify({"categories": [c.to_dict() for c in categories]}), 200


@menu_bp.post("/categories")
@require_auth
@require_role(*MENU_WRITE_ROLES)
def create_category_route():
    try:
        data = request.get_json(silent=True) or {}
        category = menu_service.create_category(
            name=data.get("name"),
            sort_order=data.get("sort_order", 0),
            is_active=data.get("is_active", True),
        )
        return jsonify({"category": category.to_dict()}), 201

    except MenuError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create menu category")
        return jsonify({"error": "Internal server error"}), 500


@menu_bp.patch("/categories/<int:category_id>")
@require_auth
@require_role(*MENU_WRITE_ROLES)
def update_category_route(category_id: int):
    try:
        data = request.get_json(silent=True) or {}
        fields = {k: data[k] for k in CATEGORY_FIELDS if k in data}
        category = menu_service.update_category(category_id, **fields)
        return jsonify({"category": category.to_dict()}), 200

    except MenuError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update menu category")
        return jsonify({"error": "Internal server error"}), 500


@menu_bp.delete("/categories/<int:category_id>")
@require_auth
@require_role(*MENU_WRITE_ROLES)
def delete_category_route(category_id: int):
    try:
        menu_service.delete_category(category_id)
        return jsonify({"success": True}), 200

    except MenuError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete menu category")
        return jsonify({"error": "Internal server error"}), 500


# -- items --

@menu_bp.get("/items")
@require_auth
def list_items_route():
    """Query: category_id, active_only=true."""
    items = menu_service.list_items(
        category_id=request.args.get("category_id", type=int),
        active_only=_flag("active_only"),
    )
    return jsonify({"items": [i.to_dict() for i in items]}), 200


@menu_bp.get("/items/count")
@require_auth
def count_items_route():
    return jsonify({"count": menu_service.count_active_items()}), 200


@menu_bp.get("/items/<int:item_id>")
@require_auth
def get_item_route(item_id: int):
    item = menu_service.get_item(item_id)
    if not item:
        return jsonify({"error": "Menu item not found"}), 404
    return jsonify({"item": item.to_dict()}), 200


@menu_bp.post("/items")
@require_auth
@require_role(*MENU_WRITE_ROLES)
def create_item_route():
    try:
        data = request.get_json(silent=True) or {}
        fields = {k: data[k] for k in ITEM_FIELDS if k in data}
        fields.setdefault("name", None)
        fields.setdefault("price", None)
        item = menu_service.create_item(**fields)
        return jsonify({"item": item.to_dict()}), 201

    except MenuError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create menu item")
        return jsonify({"error": "Internal server error"}), 500


@menu_bp.patch("/items/<int:item_id>")
@require_auth
@require_role(*MENU_WRITE_ROLES)
def update_item_route(item_id: int):
    try:
        data = request.get_json(silent=True) or {}
        fields = {k: data[k] for k in ITEM_FIELDS if k in data}
        item = menu_service.update_item(item_id, **fields)
        return jsonify({"item": item.to_dict()}), 200

    except MenuError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update menu item")
        return jsonify({"error": "Internal server error"}), 500


@menu_bp.delete("/items/<int:item_id>")
@require_auth
@require_role(*MENU_WRITE_ROLES)
def delete_item_route(item_id: int):
    try:
        menu_service.delete_item(item_id)
        return jsonify({"success": True}), 200

    except MenuError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete menu item")
        return jsonify({"error": "Internal server error"}), 500

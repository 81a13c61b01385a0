# Overview: Flask API routes for order operations; parses input and returns JSON responses.

from datetime import date

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_role
from ..permissions import ORDER_ENTRY_ROLES, ORDER_STATUS_ROLES, REPORT_ROLES
from ..services import order_service, payment_service, report_service
from ..services.order_service import OrderError
from ..services.payment_service import PaymentError
from ..services.report_service import ReportError


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@require_auth
def list_orders_route():
    """Query: status, order_type, search (order number), date (YYYY-MM-DD)."""
    day = None
    if request.args.get("date"):
        try:
            day = date.fromisoformat(request.args["date"])
        except ValueError:
            return jsonify({"error": "date must be YYYY-MM-DD"}), 400

    orders = order_service.list_orders(
        status=request.args.get("status") or None,
        order_type=request.args.get("order_type") or None,
        search=request.args.get("search") or None,
        day=day,
    )
    return jsonify({"orders": [o.to_dict(include_items=True) for o in orders]}), 200


@orders_bp.get("/range")
@require_auth
@require_role(*REPORT_ROLES)
def orders_in_range_route():
    """
    Orders created between start and end (ISO-8601; a date-only end covers
    the whole day), newest first, with lines and payments. Query: status.
    """
    try:
        start, end = report_service.parse_range(request.args.get("start"), request.args.get("end"))
        orders = order_service.list_orders_in_range(start, end, status=request.args.get("status") or None)
    except (ReportError, OrderError) as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"orders": [o.to_dict(include_items=True) for o in orders]}), 200


@orders_bp.get("/active")
@require_auth
def active_orders_route():
    """Kitchen/bar display queue. Query: scope=all|kitchen|bar."""
    try:
        orders = order_service.list_active_orders(request.args.get("scope", order_service.SCOPE_ALL))
    except OrderError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"orders": [o.to_dict(include_items=True) for o in orders]}), 200


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    order = order_service.get_order(order_id)
    if not order:
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"order": order.to_dict(include_items=True)}), 200


@orders_bp.post("")
@require_auth
@require_role(*ORDER_ENTRY_ROLES)
def create_order_route():
    """
    Place an order.

    Request body:
    {
        "order_type": "dine_in",
        "table_number": "12",
        "notes": "...",
        "items": [{"menu_item_id": 1, "quantity": 2}, {"item_name": "Water", "unit_price": 500, "quantity": 1}],
        "payment_method": "cash"
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.create_order(
            order_type=data.get("order_type"),
            items=data.get("items") or [],
            table_number=data.get("table_number"),
            notes=data.get("notes"),
            created_by=g.current_identity.id,
            payment_method=data.get("payment_method") or None,
        )
        return jsonify({"order": order.to_dict(include_items=True)}), 201

    except OrderError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.patch("/<int:order_id>/status")
@require_auth
@require_role(*ORDER_STATUS_ROLES)
def update_order_status_route(order_id: int):
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.update_status(order_id, data.get("status"))
        return jsonify({"order": order.to_dict()}), 200

    except OrderError as e:
        status = 404 if str(e) == "Order not found" else 400
        return jsonify({"error": str(e)}), status
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/payments")
@require_auth
@require_role(*ORDER_ENTRY_ROLES)
def add_payment_route(order_id: int):
    """Request body: {"payment_method": "card", "amount": 1500, "reference": "..."}. amount defaults to the balance."""
    try:
        data = request.get_json(silent=True) or {}
        payment = payment_service.add_payment(
            order_id,
            data.get("payment_method"),
            amount=data.get("amount"),
            reference=data.get("reference"),
            created_by=g.current_identity.id,
        )
        return jsonify({"payment": payment.to_dict(), "order": payment.order.to_dict(include_items=True)}), 201

    except PaymentError as e:
        status = 404 if str(e) == "Order not found" else 400
        return jsonify({"error": str(e)}), status
    except Exception:
        current_app.logger.exception("Failed to add payment")
        return jsonify({"error": "Internal server error"}), 500

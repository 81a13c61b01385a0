# Overview: Flask API routes for bars and stock transfers; parses input and returns JSON responses.

"""
Bars and transfers.

Responding to a bar-to-bar transfer is limited to bar administrators and to
cashiers whose active assignment is the destination bar.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_role
from ..identity import has_role
from ..permissions import BAR_ADMIN_ROLES, STORE_TRANSFER_ROLES, TRANSFER_ROLES
from ..services import assignment_service, transfer_service
from ..services.transfer_service import TransferError


transfers_bp = Blueprint("transfers", __name__, url_prefix="/api")


def _error_response(e: TransferError):
    status = 404 if "not found" in str(e) else 400
    return jsonify({"error": str(e)}), status


# -- Bars --

@transfers_bp.get("/bars")
@require_auth
def list_bars_route():
    active_only = request.args.get("active", "").lower() in ("1", "true", "yes")
    return jsonify({"bars": [b.to_dict() for b in transfer_service.list_bars(active_only=active_only)]}), 200


@transfers_bp.post("/bars")
@require_auth
@require_role(*BAR_ADMIN_ROLES)
def create_bar_route():
    try:
        data = request.get_json(silent=True) or {}
        bar = transfer_service.create_bar(data.get("name"), data.get("description"))
        return jsonify({"bar": bar.to_dict()}), 201

    except TransferError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create bar")
        return jsonify({"error": "Internal server error"}), 500


@transfers_bp.patch("/bars/<int:bar_id>")
@require_auth
@require_role(*BAR_ADMIN_ROLES)
def update_bar_route(bar_id: int):
    try:
        data = request.get_json(silent=True) or {}
        fields = {k: data[k] for k in ("name", "description", "is_active") if k in data}
        bar = transfer_service.update_bar(bar_id, **fields)
        return jsonify({"bar": bar.to_dict()}), 200

    except TransferError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update bar")
        return jsonify({"error": "Internal server error"}), 500


@transfers_bp.delete("/bars/<int:bar_id>")
@require_auth
@require_role(*BAR_ADMIN_ROLES)
def delete_bar_route(bar_id: int):
    try:
        transfer_service.delete_bar(bar_id)
        return jsonify({"success": True}), 200

    except TransferError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete bar")
        return jsonify({"error": "Internal server error"}), 500


@transfers_bp.get("/bars/<int:bar_id>/inventory")
@require_auth
def bar_inventory_route(bar_id: int):
    if not transfer_service.get_bar(bar_id):
        return jsonify({"error": "Bar not found"}), 404
    rows = transfer_service.list_bar_inventory(bar_id)
    return jsonify({"inventory": [r.to_dict() for r in rows]}), 200


@transfers_bp.get("/bars/<int:bar_id>/pending-transfers")
@require_auth
def pending_transfers_route(bar_id: int):
    transfers = transfer_service.list_pending_for_bar(bar_id)
    return jsonify({"transfers": [t.to_detail_dict() for t in transfers]}), 200


# -- Transfers --

@transfers_bp.get("/transfers")
@require_auth
def list_transfers_route():
    transfers = transfer_service.list_transfers(
        bar_id=request.args.get("bar_id", type=int),
        status=request.args.get("status") or None,
    )
    return jsonify({"transfers": [t.to_detail_dict() for t in transfers]}), 200


@transfers_bp.get("/transfers/<int:transfer_id>")
@require_auth
def get_transfer_route(transfer_id: int):
    """Transfer with source bar, destination bar and item names joined."""
    transfer = transfer_service.get_transfer(transfer_id)
    if not transfer:
        return jsonify({"error": "Transfer not found"}), 404
    return jsonify({"transfer": transfer.to_detail_dict()}), 200


@transfers_bp.post("/transfers/store-to-bar")
@require_auth
@require_role(*STORE_TRANSFER_ROLES)
def store_to_bar_route():
    """Request body: {bar_id, inventory_item_id, quantity, notes?}"""
    try:
        data = request.get_json(silent=True) or {}
        transfer = transfer_service.transfer_store_to_bar(
            bar_id=data.get("bar_id"),
            inventory_item_id=data.get("inventory_item_id"),
            quantity=data.get("quantity"),
            notes=data.get("notes"),
            transferred_by=g.current_identity.id,
        )
        return jsonify({"transfer": transfer.to_detail_dict()}), 201

    except TransferError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to transfer stock to bar")
        return jsonify({"error": "Internal server error"}), 500


@transfers_bp.post("/transfers")
@require_auth
@require_role(*TRANSFER_ROLES)
def create_transfer_route():
    """Request body: {source_bar_id, destination_bar_id, inventory_item_id, quantity, notes?}"""
    try:
        data = request.get_json(silent=True) or {}
        transfer = transfer_service.create_bar_transfer(
            source_bar_id=data.get("source_bar_id"),
            destination_bar_id=data.get("destination_bar_id"),
            inventory_item_id=data.get("inventory_item_id"),
            quantity=data.get("quantity"),
            notes=data.get("notes"),
            requested_by=g.current_identity.id,
        )
        return jsonify({"transfer": transfer.to_detail_dict()}), 201

    except TransferError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create transfer")
        return jsonify({"error": "Internal server error"}), 500


@transfers_bp.post("/transfers/<int:transfer_id>/respond")
@require_auth
@require_role(*TRANSFER_ROLES)
def respond_transfer_route(transfer_id: int):
    """Request body: {"response": "accept" | "reject"}"""
    try:
        transfer = transfer_service.get_transfer(transfer_id)
        if not transfer:
            return jsonify({"error": "Transfer not found"}), 404

        identity = g.current_identity
        if not has_role(identity.role, BAR_ADMIN_ROLES):
            assignment = assignment_service.get_active_assignment(
                **assignment_service.assignee_kwargs(identity)
            )
            if not assignment or assignment.bar_id != transfer.destination_bar_id:
                return jsonify({"error": "Only the destination bar can respond to this transfer"}), 403

        data = request.get_json(silent=True) or {}
        transfer = transfer_service.respond_to_transfer(
            transfer_id,
            data.get("response"),
            responded_by=identity.id,
        )
        return jsonify({"transfer": transfer.to_detail_dict()}), 200

    except TransferError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to respond to transfer")
        return jsonify({"error": "Internal server error"}), 500

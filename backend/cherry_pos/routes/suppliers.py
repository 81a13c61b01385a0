# Overview: Flask API routes for supplier operations; parses input and returns JSON responses.

"""
Supplier Routes

All routes require authentication. Create, update and deactivate are
limited to SUPPLIER_WRITE_ROLES.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_role
from ..permissions import SUPPLIER_WRITE_ROLES
from ..services import supplier_service
from ..services.supplier_service import SupplierNotFoundError, SupplierValidationError


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")

UPDATE_FIELDS = ("name", "contact_person", "phone", "email", "address", "notes", "is_active")


@suppliers_bp.get("")
@require_auth
def list_suppliers_route():
    """
    Query parameters:
    - active_only: only active suppliers (default: false)
    - search: matches name or contact person
    """
    suppliers = supplier_service.list_suppliers(
        active_only=request.args.get("active_only", "false").lower() == "true",
        search=request.args.get("search") or None,
    )
    return jsonify({"suppliers": [s.to_dict() for s in suppliers]}), 200


@suppliers_bp.post("")
@require_auth
@require_role(*SUPPLIER_WRITE_ROLES)
def create_supplier_route():
    """
    Request body:
    {
        "name": "Supplier Name",  // required
        "contact_person": "...",
        "phone": "...",
        "email": "...",
        "address": "...",
        "notes": "..."
    }
    """
    data = request.get_json(silent=True) or {}

    if not data.get("name"):
        return jsonify({"error": "name is required"}), 400

    try:
        supplier = supplier_service.create_supplier(
            name=data.get("name"),
            contact_person=data.get("contact_person"),
            phone=data.get("phone"),
            email=data.get("email"),
            address=data.get("address"),
            notes=data.get("notes"),
        )
        return jsonify({"supplier": supplier.to_dict()}), 201
    except SupplierValidationError as e:
        return jsonify({"error": str(e)}), 400


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
def get_supplier_route(supplier_id: int):
    try:
        supplier = supplier_service.get_supplier(supplier_id)
        return jsonify({"supplier": supplier.to_dict()}), 200
    except SupplierNotFoundError:
        return jsonify({"error": "Supplier not found"}), 404


@suppliers_bp.patch("/<int:supplier_id>")
@require_auth
@require_role(*SUPPLIER_WRITE_ROLES)
def update_supplier_route(supplier_id: int):
    """All fields optional; is_active=true reactivates."""
    data = request.get_json(silent=True) or {}
    fields = {k: data[k] for k in UPDATE_FIELDS if k in data}

    try:
        supplier = supplier_service.update_supplier(supplier_id, **fields)
        return jsonify({"supplier": supplier.to_dict()}), 200
    except SupplierNotFoundError:
        return jsonify({"error": "Supplier not found"}), 404
    except SupplierValidationError as e:
        return jsonify({"error": str(e)}), 400


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_role(*SUPPLIER_WRITE_ROLES)
def deactivate_supplier_route(supplier_id: int):
    """Soft delete: the supplier is deactivated, never removed."""
    try:
        supplier = supplier_service.deactivate_supplier(supplier_id)
        return jsonify({"supplier": supplier.to_dict()}), 200
    except SupplierNotFoundError:
        return jsonify({"error": "Supplier not found"}), 404

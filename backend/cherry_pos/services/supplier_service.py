# Overview: Service-layer operations for suppliers; encapsulates business logic and database work.

"""
Supplier Service

Suppliers are the contacts stock is bought from. They are never deleted:
removing a supplier deactivates it, and an update with is_active=True brings
it back. Names are unique among active suppliers (case-insensitive).
"""

from sqlalchemy import func

from ..extensions import db
from ..models import Supplier
from .auth_service import is_valid_email


class SupplierNotFoundError(Exception):
    """Raised when a supplier is not found."""
    pass


class SupplierValidationError(Exception):
    """Raised when supplier data fails validation."""
    pass


CONTACT_FIELDS = ("contact_person", "phone", "email", "address", "notes")


def _clean(value) -> str | None:
    return (str(value).strip() or None) if value is not None else None


def _check_email(email: str | None) -> None:
    if email is not None and not is_valid_email(email):
        raise SupplierValidationError("Invalid email address")


def _check_unique_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Supplier).filter(
        func.lower(Supplier.name) == name.lower(),
        Supplier.is_active.is_(True),
    )
    if exclude_id is not None:
        query = query.filter(Supplier.id != exclude_id)
    if query.first():
        raise SupplierValidationError(f"Supplier '{name}' already exists")


def get_supplier(supplier_id: int) -> Supplier:
    supplier = db.session.get(Supplier, supplier_id)
    if not supplier:
        raise SupplierNotFoundError(f"Supplier {supplier_id} not found")
    return supplier


def list_suppliers(*, active_only: bool = False, search: str | None = None) -> list[Supplier]:
    """Ordered by name. search matches name or contact person."""
    query = db.session.query(Supplier)
    if active_only:
        query = query.filter(Supplier.is_active.is_(True))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(Supplier.name.ilike(pattern) | Supplier.contact_person.ilike(pattern))
    return query.order_by(Supplier.name.asc(), Supplier.id.asc()).all()


def create_supplier(
    *,
    name: str,
    contact_person: str | None = None,
    phone: str | None = None,
    email: str | None = None,
    address: str | None = None,
    notes: str | None = None,
) -> Supplier:
    """
    Raises:
        SupplierValidationError: missing or duplicate name, invalid email
    """
    name = _clean(name)
    if not name:
        raise SupplierValidationError("Supplier name is required")
    _check_unique_name(name)

    email = _clean(email)
    _check_email(email)

    supplier = Supplier(
        name=name,
        contact_person=_clean(contact_person),
        phone=_clean(phone),
        email=email,
        address=_clean(address),
        notes=_clean(notes),
        is_active=True,
    )
    db.session.add(supplier)
    db.session.commit()
    return supplier


def update_supplier(supplier_id: int, **fields) -> Supplier:
    """
    Raises:
        SupplierNotFoundError: unknown supplier
        SupplierValidationError: empty or duplicate name, invalid email
    """
    supplier = get_supplier(supplier_id)

    if "name" in fields:
        name = _clean(fields["name"])
        if not name:
            raise SupplierValidationError("Supplier name cannot be empty")
        _check_unique_name(name, exclude_id=supplier.id)
        supplier.name = name

    for field in CONTACT_FIELDS:
        if field in fields:
            value = _clean(fields[field])
            if field == "email":
                _check_email(value)
            setattr(supplier, field, value)

    if "is_active" in fields and fields["is_active"] is not None:
        if fields["is_active"] and not supplier.is_active:
            _check_unique_name(supplier.name, exclude_id=supplier.id)
        supplier.is_active = bool(fields["is_active"])

    db.session.commit()
    return supplier


def deactivate_supplier(supplier_id: int) -> Supplier:
    supplier = get_supplier(supplier_id)
    supplier.is_active = False
    db.session.commit()
    return supplier

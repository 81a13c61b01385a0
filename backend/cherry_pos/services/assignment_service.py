# Overview: Service-layer operations for cashier-bar assignment; encapsulates business logic and database work.

"""
Which bar each cashier serves.

An assignee is either an administrator account (user_id) or a staff account
(staff_user_id), never both. assign() runs in two committed steps:

1. deactivate every active assignment of the assignee;
2. reactivate the (assignee, bar) row if one exists, otherwise insert it.

Between the two commits the assignee has no active assignment. At no point
does it have two.
"""

from ..extensions import db
from ..identity import Identity, KIND_STAFF
from ..models import AdminUser, Bar, CashierBarAssignment, StaffUser


class AssignmentError(Exception):
    """Raised when an assignment cannot be made."""
    pass


def _assignee_filter(user_id: int | None, staff_user_id: int | None):
    if (user_id is None) == (staff_user_id is None):
        raise AssignmentError("Exactly one of user_id or staff_user_id is required")
    if staff_user_id is not None:
        return CashierBarAssignment.staff_user_id == staff_user_id
    return CashierBarAssignment.user_id == user_id


def assignee_kwargs(identity: Identity) -> dict:
    """Map an Identity onto the user_id / staff_user_id pair."""
    if identity.kind == KIND_STAFF:
        return {"user_id": None, "staff_user_id": identity.id}
    return {"user_id": identity.id, "staff_user_id": None}


def assign(
    bar_id: int,
    *,
    user_id: int | None = None,
    staff_user_id: int | None = None,
    assigned_by: int | None = None,
) -> CashierBarAssignment:
    """Make bar_id the single active assignment of the assignee."""
    assignee = _assignee_filter(user_id, staff_user_id)

    bar = db.session.get(Bar, bar_id)
    if not bar:
        raise AssignmentError("Bar not found")
    if not bar.is_active:
        raise AssignmentError("Bar is not active")

    if staff_user_id is not None and not db.session.get(StaffUser, staff_user_id):
        raise AssignmentError("Staff user not found")
    if user_id is not None and not db.session.get(AdminUser, user_id):
        raise AssignmentError("User not found")

    # Step 1: deactivate
    db.session.query(CashierBarAssignment).filter(
        assignee,
        CashierBarAssignment.is_active.is_(True),
    ).update({"is_active": False}, synchronize_session="fetch")
    db.session.commit()

    # Step 2: upsert keyed on (assignee, bar)
    assignment = db.session.query(CashierBarAssignment).filter(
        assignee,
        CashierBarAssignment.bar_id == bar_id,
    ).first()

    if assignment:
        assignment.is_active = True
        assignment.assigned_by = assigned_by
    else:
        assignment = CashierBarAssignment(
            user_id=user_id,
            staff_user_id=staff_user_id,
            bar_id=bar_id,
            assigned_by=assigned_by,
            is_active=True,
        )
        db.session.add(assignment)

    db.session.commit()
    return assignment


def unassign(*, user_id: int | None = None, staff_user_id: int | None = None) -> int:
    """Deactivate the assignee's assignments. Returns how many were active."""
    assignee = _assignee_filter(user_id, staff_user_id)
    count = db.session.query(CashierBarAssignment).filter(
        assignee,
        CashierBarAssignment.is_active.is_(True),
    ).update({"is_active": False}, synchronize_session="fetch")
    db.session.commit()
    return count


def get_active_assignment(
    *,
    user_id: int | None = None,
    staff_user_id: int | None = None,
) -> CashierBarAssignment | None:
    assignee = _assignee_filter(user_id, staff_user_id)
    return db.session.query(CashierBarAssignment).filter(
        assignee,
        CashierBarAssignment.is_active.is_(True),
    ).first()


def list_active_assignments(bar_id: int | None = None) -> list[dict]:
    """Active assignments, newest first, each with the assignee's profile."""
    query = db.session.query(CashierBarAssignment).filter(CashierBarAssignment.is_active.is_(True))
    if bar_id is not None:
        query = query.filter(CashierBarAssignment.bar_id == bar_id)
    assignments = query.order_by(
        CashierBarAssignment.created_at.desc(),
        CashierBarAssignment.id.desc(),
    ).all()

    results = []
    for assignment in assignments:
        data = assignment.to_dict()
        if assignment.staff_user_id is not None:
            person = db.session.get(StaffUser, assignment.staff_user_id)
        else:
            person = db.session.get(AdminUser, assignment.user_id)
        data["profile"] = (
            {"id": person.id, "full_name": person.full_name, "email": person.email}
            if person else None
        )
        results.append(data)
    return results

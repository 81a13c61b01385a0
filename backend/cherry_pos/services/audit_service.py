# Overview: Service-layer operations for audit; append-only security and back-office event log.

"""
Audit trail for security-relevant actions.

event_type examples:
- LOGIN_SUCCESS / LOGIN_FAILED
- STAFF_LOGIN_SUCCESS / STAFF_LOGIN_FAILED
- LOGOUT
- ROLE_DENIED
- ACCOUNT_CREATED / ACCOUNT_UPDATED / ACCOUNT_DELETED
- STAFF_CREATED / STAFF_UPDATED / STAFF_DELETED / STAFF_PASSWORD_RESET
- STAFF_IMPORT
- LEGACY_MIGRATION
- BAR_ASSIGNED
"""

from ..extensions import db
from ..identity import Identity
from ..models import AuditEvent
from ..time_utils import utcnow


def log_event(
    event_type: str,
    success: bool,
    actor: Identity | None = None,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    commit: bool = True,
) -> AuditEvent:
    event = AuditEvent(
        actor_kind=actor.kind if actor else None,
        actor_id=actor.id if actor else None,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    if commit:
        db.session.commit()

    return event


def list_events(
    *,
    event_type: str | None = None,
    actor_kind: str | None = None,
    actor_id: int | None = None,
    limit: int = 100,
) -> list[AuditEvent]:
    query = db.session.query(AuditEvent)
    if event_type:
        query = query.filter(AuditEvent.event_type == event_type)
    if actor_kind:
        query = query.filter(AuditEvent.actor_kind == actor_kind)
    if actor_id is not None:
        query = query.filter(AuditEvent.actor_id == actor_id)
    return query.order_by(AuditEvent.occurred_at.desc(), AuditEvent.id.desc()).limit(limit).all()

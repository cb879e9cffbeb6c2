import json
from typing import Any

from flask import g, has_request_context, request
from sqlalchemy.orm import Session

from app.partnerhub.models import Admin, AuditEvent


def record_event(
    s: Session,
    *,
    actor: Admin | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | int | None = None,
    reason: str | None = None,
    metadata: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> AuditEvent:
    """
    Append-only audit event helper. `actor` is None for public and system actions.
    """
    in_request = has_request_context()
    rid = request_id or (getattr(g, "request_id", None) if in_request else None)
    if metadata:
        metadata = {k: v for k, v in metadata.items() if v is not None}
    ev = AuditEvent(
        request_id=rid,
        actor_admin_id=actor.id if actor else None,
        actor_email=actor.email if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        reason=reason,
        metadata_json=json.dumps(metadata, sort_keys=True, default=str) if metadata else None,
        client_ip=request.remote_addr if in_request else None,
    )
    s.add(ev)
    return ev

# backend/contractor_hub/domain/audit.py
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Optional, TYPE_CHECKING

from sqlalchemy.orm import Session

from ..models import AuditEvent

if TYPE_CHECKING:
    from ..auth import Principal

log = logging.getLogger(__name__)


def _dumps(v: Optional[dict[str, Any]]) -> Optional[str]:
    if v is None:
        return None
    return json.dumps(v, sort_keys=True, default=str)


def audit_write(
    db: Session,
    *,
    tenant_id: int,
    actor_user_id: Optional[int],
    action: str,
    entity_type: str,
    entity_id: Any,
    category: str = "job",
    before: Optional[dict[str, Any]] = None,
    after: Optional[dict[str, Any]] = None,
) -> AuditEvent:
    """
    Record one audit row.

    Flush only; the caller commits the change and its audit row together.
    """
    row = AuditEvent(
        tenant_id=int(tenant_id),
        actor_user_id=int(actor_user_id) if actor_user_id is not None else None,
        action=str(action),
        category=str(category),
        entity_type=str(entity_type),
        entity_id=str(entity_id),
        before_json=_dumps(before),
        after_json=_dumps(after),
        created_at=datetime.utcnow(),
    )
    db.add(row)
    db.flush()
    log.info(
        "audit %s %s:%s",
        action,
        entity_type,
        entity_id,
        extra={"tenant_id": int(tenant_id), "user_id": actor_user_id},
    )
    return row


def emit_audit(
    db: Session,
    *,
    principal: Optional["Principal"] = None,
    tenant_id: Optional[int] = None,
    actor_user_id: Optional[int] = None,
    action: str,
    entity_type: str,
    entity_id: Any,
    category: str = "job",
    before: Optional[dict[str, Any]] = None,
    after: Optional[dict[str, Any]] = None,
) -> AuditEvent:
    """
    Principal-aware wrapper around audit_write. Flush-only.

        emit_audit(db, principal=p, action="job_scheduled", entity_type="Job", entity_id=job.id, after={...})

    Background jobs without a user pass tenant_id=... instead.
    """
    if principal is not None:
        eff_tenant_id = int(principal.tenant_id)
        eff_actor = int(principal.user_id)
    else:
        if tenant_id is None:
            raise TypeError("emit_audit requires principal=... OR tenant_id=...")
        eff_tenant_id = int(tenant_id)
        eff_actor = int(actor_user_id) if actor_user_id is not None else None

    return audit_write(
        db,
        tenant_id=eff_tenant_id,
        actor_user_id=eff_actor,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        category=category,
        before=before,
        after=after,
    )

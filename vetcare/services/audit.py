"""Audit trail writer."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from vetcare.models import AuditLog

logger = logging.getLogger(__name__)


def record_audit(
    db: Session,
    *,
    clinic_id: UUID | None,
    actor: str | None,
    action: str,
    resource: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditLog:
    """Persist an audit entry in the caller's transaction."""

    entry = AuditLog(
        clinic_id=clinic_id,
        actor=actor,
        action=action,
        resource=resource,
        occurred_at=datetime.now(timezone.utc),
        metadata_json=metadata,
    )
    db.add(entry)
    db.flush()
    logger.info(
        "audit recorded",
        extra={"action": action, "resource": resource, "actor": actor},
    )
    return entry

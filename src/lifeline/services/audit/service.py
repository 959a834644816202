from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.lifeline.domain.models.user import Principal

logger = logging.getLogger("audit")


@dataclass
class AuditEvent:
    """Structured representation of an audit event.

    Intentionally keeps payload minimal and avoids medical details: focus on
    IDs, types, and high-level actions rather than record contents.
    """

    timestamp: str
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    subject: Optional[str] = None
    user_id: Optional[str] = None
    role: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None


class AuditService:
    def log_event(
        self,
        *,
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        principal: Optional[Principal] = None,
        subject: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        """Log a structured audit event.

        - `action`: high-level verb, e.g., "create_accident", "delete_medical_id".
        - `resource_type`: coarse type, e.g., "accident", "medical_id".
        - `resource_id`: stable identifier when available.
        - `principal`: the acting user; its id and role are recorded.
        - `subject`: optional identifier for the API caller. If omitted, we
          attempt to infer it from the current security context (when API
          auth is enabled).
        - `extra`: optional small dict of non-medical metadata (counts, flags).
        """

        if subject is None:
            from src.lifeline.security import get_current_subject

            subject = get_current_subject()

        event = AuditEvent(
            timestamp=datetime.now(timezone.utc).isoformat(),
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            subject=subject,
            user_id=principal.id if principal else None,
            role=principal.role.value if principal else None,
            extra=extra,
        )

        try:
            logger.info(json.dumps(asdict(event)))
        except TypeError:
            # Fallback: log a simpler representation if something in extra is
            # not JSON serializable.
            safe_event = asdict(event)
            safe_event["extra"] = None
            logger.info(json.dumps(safe_event))

        return event


audit_service = AuditService()

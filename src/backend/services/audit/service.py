from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger("audit")


@dataclass
class AuditEvent:
    """Structured representation of an audit event.

    Intentionally keeps payload minimal and avoids PHI: focus on IDs, types,
    and high-level actions rather than consultation descriptions, messages or
    document contents.
    """

    timestamp: str
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    subject: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None


class AuditService:
    def log_event(
        self,
        *,
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        subject: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        """Log a structured audit event.

        - `action`: high-level verb, e.g., "accept_consultation", "upload_document".
        - `resource_type`: coarse type, e.g., "consultation", "document".
        - `resource_id`: stable identifier when available.
        - `subject`: optional identifier for the caller. If omitted, it is
          taken from the current security context.
        - `extra`: optional small dict of non-PHI metadata (counts, flags).
        """

        if subject is None:
            from src.backend.security import get_current_subject

            subject = get_current_subject()

        event = AuditEvent(
            timestamp=datetime.now(timezone.utc).isoformat(),
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            subject=subject,
            extra=extra,
        )

        try:
            logger.info(json.dumps(asdict(event)))
        except TypeError:
            # Log a simpler representation if something in extra is not JSON
            # serializable.
            safe_event = asdict(event)
            safe_event["extra"] = None
            logger.info(json.dumps(safe_event))

        return event


audit_service = AuditService()

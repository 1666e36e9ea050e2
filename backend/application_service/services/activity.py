from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from application_service.models.application_activity import ApplicationActivity


def log_application_activity(
    db: Session,
    *,
    application_id: str,
    actor_id: str,
    type: str,
    message: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None,
) -> ApplicationActivity:
    ev = ApplicationActivity(
        application_id=application_id,
        actor_id=actor_id,
        type=type,
        message=message,
        data=data,
    )
    db.add(ev)
    # Let caller decide commit timing; flush so `id`/`created_at` can be used.
    db.flush()
    return ev

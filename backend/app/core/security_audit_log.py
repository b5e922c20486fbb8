from __future__ import annotations

import json
import logging

from fastapi import Request
from sqlalchemy.orm import Session

from app.core.rate_limit import client_ip
from app.models.security_audit import SecurityAuditEvent

log = logging.getLogger(__name__)


def _request_id(request: Request) -> str | None:
    rid = getattr(getattr(request, "state", None), "request_id", None)
    rid = str(rid or "").strip()
    return rid or None


def audit_log(
    *,
    db: Session,
    request: Request,
    event_type: str,
    actor_user_id: int | None = None,
    target_user_id: int | None = None,
    meta: dict | str | None = None,
) -> None:
    """Queue a security event on ``db``; the caller commits."""
    if isinstance(meta, dict):
        meta_str = json.dumps(meta, ensure_ascii=False)
    elif isinstance(meta, str):
        meta_str = meta
    else:
        meta_str = None

    ip = client_ip(request)
    log.info("security event %s actor=%s ip=%s", event_type, actor_user_id, ip)
    db.add(
        SecurityAuditEvent(
            actor_user_id=actor_user_id,
            target_user_id=target_user_id,
            event_type=str(event_type),
            meta=meta_str,
            request_id=_request_id(request),
            ip=ip,
        )
    )

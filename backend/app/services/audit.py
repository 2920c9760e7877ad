import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger("agencia.audit")


def audit_event(
    action: str,
    user_id: Optional[int],
    payload: Dict[str, Any],
    *,
    db: Session | None = None,
    idempotency_key: str | None = None,
    request_id: str | None = None,
    ip: str | None = None,
    user_agent: str | None = None,
    commit: bool = True,
) -> Optional[int]:
    """
    Persist an audit event.

    With `commit=False` the row is only flushed, so it lands (or rolls back)
    together with the caller's ledger transaction and any DB error propagates.
    With `commit=True` the event is written on its own and a DB failure is
    logged instead of raised.

    Returns the created audit log id when available.
    """
    from app import models

    event = {
        "action": action,
        "user_id": user_id,
        "payload": payload,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if not commit:
        if db is None:
            raise ValueError("audit_event(commit=False) requires the caller's session")
        log = models.AuditLog(
            action=action,
            user_id=user_id,
            payload_json=json.dumps(payload or {}, default=str),
            idempotency_key=idempotency_key,
            request_id=request_id,
            ip=ip,
            user_agent=user_agent,
        )
        db.add(log)
        db.flush()
        return log.id

    created_session = False
    session: Session | None = db
    try:
        if session is None:
            from app.database import SessionLocal

            session = SessionLocal()
            created_session = True

        if idempotency_key:
            existing = (
                session.query(models.AuditLog)
                .filter(models.AuditLog.idempotency_key == idempotency_key)
                .first()
            )
            if existing is not None:
                return existing.id

        log = models.AuditLog(
            action=action,
            user_id=user_id,
            payload_json=json.dumps(payload or {}, default=str),
            idempotency_key=idempotency_key,
            request_id=request_id,
            ip=ip,
            user_agent=user_agent,
        )
        session.add(log)
        session.commit()
        return log.id
    except SQLAlchemyError:
        if session is not None:
            session.rollback()
        logger.warning("audit_write_failed", extra={"audit_event": event})
        return None
    finally:
        if created_session and session is not None:
            session.close()

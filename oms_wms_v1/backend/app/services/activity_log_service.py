from __future__ import annotations

from datetime import datetime, time, timezone
from typing import Any

from flask import current_app
from sqlalchemy import func, or_, select

from app.extensions import db
from app.models import ActivityLog

ENTITY_INBOUND_REQUEST = "inbound_request"
ENTITY_USER = "user"

ACTION_INBOUND_CREATE = "INBOUND_CREATE"
ACTION_INBOUND_STATUS_UPDATE = "INBOUND_STATUS_UPDATE"
ACTION_INBOUND_DELETE = "INBOUND_DELETE"
ACTION_AUTH_BOOTSTRAP = "AUTH_BOOTSTRAP"
ACTION_AUTH_LOGIN = "AUTH_LOGIN"
ACTION_AUTH_LOGIN_FAILED = "AUTH_LOGIN_FAILED"

MAX_PAGE_SIZE = 100


def record_activity(
    *,
    action: str,
    entity_type: str,
    entity_id: str,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
    actor_user_id: int | None = None,
    ip_address: str | None = None,
    commit: bool = True,
) -> ActivityLog:
    """Add an activity row. With ``commit=False`` the row is only flushed so the caller owns the transaction."""
    entry = ActivityLog(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        before_json=before,
        after_json=after,
        actor_user_id=actor_user_id,
        ip_address=ip_address,
    )
    db.session.add(entry)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    current_app.logger.info("activity %s %s:%s actor=%s", action, entity_type, entity_id, actor_user_id)
    return entry


def parse_boundary(raw: str | None, *, end_of_day: bool = False) -> datetime | None:
    """Parse an ISO date or datetime filter value; date-only end bounds cover the whole day."""
    if not raw:
        return None
    value = raw.strip()
    parsed = datetime.fromisoformat(value)
    if len(value) == 10 and end_of_day:
        parsed = datetime.combine(parsed.date(), time.max)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def list_activity_logs(
    *,
    search: str | None = None,
    action: str | None = None,
    entity_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = 1,
    limit: int = 20,
    newest_first: bool = True,
) -> tuple[list[ActivityLog], int]:
    stmt = select(ActivityLog)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(
                ActivityLog.action.ilike(pattern),
                ActivityLog.entity_type.ilike(pattern),
                ActivityLog.entity_id.ilike(pattern),
            )
        )
    if action:
        stmt = stmt.where(ActivityLog.action == action)
    if entity_id:
        stmt = stmt.where(ActivityLog.entity_id == entity_id)
    if start is not None:
        stmt = stmt.where(ActivityLog.created_at >= start)
    if end is not None:
        stmt = stmt.where(ActivityLog.created_at <= end)

    total = db.session.scalar(select(func.count()).select_from(stmt.subquery())) or 0

    ordering = (ActivityLog.created_at.desc(), ActivityLog.id.desc()) if newest_first else (
        ActivityLog.created_at.asc(),
        ActivityLog.id.asc(),
    )
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    page = max(1, page)
    rows = db.session.execute(stmt.order_by(*ordering).offset((page - 1) * limit).limit(limit)).scalars().all()
    return list(rows), total


def activity_stats() -> dict[str, object]:
    rows = db.session.execute(
        select(ActivityLog.action, func.count(ActivityLog.id)).group_by(ActivityLog.action)
    ).all()
    by_action = {action: count for action, count in rows}
    return {"total": sum(by_action.values()), "byAction": by_action}


def build_activity_log_response(entry: ActivityLog) -> dict[str, object]:
    created_at = entry.created_at
    if created_at is not None and created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return {
        "id": entry.id,
        "actorUserId": entry.actor_user_id,
        "entityType": entry.entity_type,
        "entityId": entry.entity_id,
        "action": entry.action,
        "before": entry.before_json,
        "after": entry.after_json,
        "ipAddress": entry.ip_address,
        "createdAt": created_at.isoformat() if created_at else None,
    }

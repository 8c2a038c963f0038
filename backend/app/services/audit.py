from __future__ import annotations

import datetime as dt
import logging
from typing import Any

from sqlalchemy.orm import Session

from app.models.activity_log import ActivityAction, ActivityLog, ActivityResult
from app.models.user import User

logger = logging.getLogger(__name__)

REDACTED_FIELDS = {"password", "hashed_password"}
IGNORED_CHANGE_FIELDS = REDACTED_FIELDS | {"updated_at"}


def _jsonable(value: Any) -> Any:
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    if hasattr(value, "value") and not isinstance(value, (str, int, float, bool)):
        return value.value
    return value


def snapshot(entity: object, fields: list[str] | tuple[str, ...]) -> dict[str, Any]:
    return {field: _jsonable(getattr(entity, field)) for field in fields}


def calculate_changes(before: dict[str, Any] | None, after: dict[str, Any] | None) -> list[dict[str, Any]]:
    if not before or not after:
        return []
    changes: list[dict[str, Any]] = []
    for key in dict.fromkeys([*before.keys(), *after.keys()]):
        if key in IGNORED_CHANGE_FIELDS:
            continue
        old_value = before.get(key)
        new_value = after.get(key)
        if old_value != new_value:
            changes.append({"field": key, "old_value": old_value, "new_value": new_value})
    return changes


def _redact(values: dict[str, Any] | None) -> dict[str, Any] | None:
    if values is None:
        return None
    return {key: value for key, value in values.items() if key not in REDACTED_FIELDS}


def log_activity(
    db: Session,
    *,
    user: User | None,
    action: ActivityAction | str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
    result: ActivityResult = ActivityResult.success,
    ip_address: str | None = None,
) -> ActivityLog:
    payload = dict(details or {})
    before = _redact(payload.get("before"))
    after = _redact(payload.get("after"))
    if before is not None:
        payload["before"] = before
    if after is not None:
        payload["after"] = after
    if "changes" not in payload:
        changes = calculate_changes(before, after)
        if changes:
            payload["changes"] = changes

    record = ActivityLog(
        user_id=user.id if user is not None else None,
        action=action.value if isinstance(action, ActivityAction) else action,
        entity_type=entity_type,
        entity_id=entity_id,
        ip_address=ip_address,
        result=result,
        details=payload,
    )
    db.add(record)
    return record


def record_failure(
    db: Session,
    *,
    user: User | None,
    action: ActivityAction,
    entity_type: str,
    entity_id: str | None,
    error: str,
    ip_address: str | None = None,
) -> None:
    """Write a FAILURE entry in its own transaction; never raises."""
    try:
        db.rollback()
        log_activity(
            db,
            user=user,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details={"error": error},
            result=ActivityResult.failure,
            ip_address=ip_address,
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("Unable to record failed %s on %s %s", action.value, entity_type, entity_id, exc_info=True)

"""Create, update and soft-delete schedule entries.

The functions here stage changes and the matching audit record on the session;
:func:`audited_schedule_change` owns the transaction so that every call ends with
exactly one audit entry, SUCCESS on commit or FAILURE otherwise.
"""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import datetime as dt
import logging
from typing import Any, TypeVar

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AppError,
    InternalServiceError,
    InvalidRequestError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from app.models.activity_log import ActivityAction
from app.models.group import Group
from app.models.schedule import Schedule
from app.models.subject import Subject
from app.models.user import SCHEDULE_EDITOR_ROLES, User
from app.schemas.schedule import (
    TIME_PATTERN,
    EntitySummary,
    ScheduleCreate,
    ScheduleFields,
    ScheduleOut,
    ScheduleUpdate,
)
from app.services.audit import log_activity, record_failure, snapshot
from app.services.notifications import notify_schedule_change
from app.services.subgroups import enforce_subgroup_scope, resolve_subgroup_reference

logger = logging.getLogger(__name__)

SCHEDULE_ENTITY = "Schedule"
SNAPSHOT_FIELDS = (
    "subject_id",
    "group_id",
    "subgroup_id",
    "date",
    "day_of_week",
    "start_time",
    "end_time",
    "location",
    "event_type",
    "description",
    "is_active",
)
REQUIRED_FIELDS = ("subject_id", "date", "start_time", "end_time")
PATCHABLE_FIELDS = ("location", "event_type", "description")

PayloadT = TypeVar("PayloadT", bound=ScheduleFields)


def day_of_week_for(value: dt.date) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return (value.weekday() + 1) % 7


def ensure_schedule_editor(user: User) -> None:
    if user.role not in SCHEDULE_EDITOR_ROLES:
        raise PermissionDeniedError("Only admins and lecturers can modify the schedule")


def _require_subject(db: Session, subject_id: str) -> Subject:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise ResourceNotFoundError("Subject", subject_id)
    return subject


def _require_group(db: Session, group_id: str) -> Group:
    group = db.get(Group, group_id)
    if group is None:
        raise ResourceNotFoundError("Group", group_id)
    return group


def _validate_time(value: str, field: str) -> None:
    if not TIME_PATTERN.fullmatch(value):
        raise InvalidRequestError(f"{field} must be in HH:MM 24-hour format", details={"field": field})


def coerce_payload(model: type[PayloadT], raw: Any) -> PayloadT:
    """Validate a raw request body; shape errors become 400s like any other bad input."""
    if isinstance(raw, model):
        return raw
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InvalidRequestError("Request body must be a JSON object")
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ]
        raise InvalidRequestError("Invalid schedule payload", details={"errors": errors}) from exc


def get_schedule(db: Session, schedule_id: str) -> Schedule:
    """Direct lookup; soft-deleted entries are returned as well."""
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise ResourceNotFoundError(SCHEDULE_ENTITY, schedule_id)
    return schedule


def create_schedule(
    db: Session,
    *,
    actor: User,
    payload: ScheduleCreate | dict[str, Any] | None,
    ip_address: str | None = None,
) -> Schedule:
    ensure_schedule_editor(actor)
    payload = coerce_payload(ScheduleCreate, payload)

    missing = [field for field in REQUIRED_FIELDS if not getattr(payload, field)]
    if missing:
        raise InvalidRequestError(
            "Subject, date, start time and end time are required",
            details={"missing": missing},
        )
    _validate_time(payload.start_time, "start_time")
    _validate_time(payload.end_time, "end_time")

    _require_subject(db, payload.subject_id)
    group_id = payload.group_id or None
    if group_id:
        _require_group(db, group_id)

    schedule = Schedule(
        subject_id=payload.subject_id,
        group_id=group_id,
        subgroup_id=resolve_subgroup_reference(db, payload.subgroup_id, group_id, payload.subject_id),
        date=payload.date,
        day_of_week=day_of_week_for(payload.date),
        start_time=payload.start_time,
        end_time=payload.end_time,
        location=payload.location,
        event_type=payload.event_type,
        description=payload.description,
        is_active=True,
    )
    db.add(schedule)
    db.flush()
    enforce_subgroup_scope(db, schedule)

    log_activity(
        db,
        user=actor,
        action=ActivityAction.create,
        entity_type=SCHEDULE_ENTITY,
        entity_id=schedule.id,
        details={"after": snapshot(schedule, SNAPSHOT_FIELDS)},
        ip_address=ip_address,
    )
    notify_schedule_change(db, schedule=schedule, title="Schedule entry added", actor=actor)
    logger.info("Schedule %s created by %s", schedule.id, actor.id)
    return schedule


def update_schedule(
    db: Session,
    *,
    actor: User,
    payload: ScheduleUpdate | dict[str, Any] | None,
    ip_address: str | None = None,
) -> Schedule:
    ensure_schedule_editor(actor)
    payload = coerce_payload(ScheduleUpdate, payload)
    if not payload.id:
        raise InvalidRequestError("Schedule id is required")
    schedule = get_schedule(db, payload.id)

    supplied = payload.model_fields_set
    cleared = [field for field in REQUIRED_FIELDS if field in supplied and not getattr(payload, field)]
    if cleared:
        raise InvalidRequestError("Required schedule fields cannot be cleared", details={"fields": cleared})

    if "subject_id" in supplied:
        _require_subject(db, payload.subject_id)
    if "group_id" in supplied and payload.group_id:
        _require_group(db, payload.group_id)
    if "start_time" in supplied:
        _validate_time(payload.start_time, "start_time")
    if "end_time" in supplied:
        _validate_time(payload.end_time, "end_time")

    before = snapshot(schedule, SNAPSHOT_FIELDS)

    if "subject_id" in supplied:
        schedule.subject_id = payload.subject_id
    if "group_id" in supplied:
        schedule.group_id = payload.group_id or None
    if "date" in supplied:
        schedule.date = payload.date
        schedule.day_of_week = day_of_week_for(payload.date)
    if "start_time" in supplied:
        schedule.start_time = payload.start_time
    if "end_time" in supplied:
        schedule.end_time = payload.end_time
    for field in PATCHABLE_FIELDS:
        if field in supplied:
            setattr(schedule, field, getattr(payload, field))

    # Resolve against the group/subject the entry has after this update.
    if "subgroup_id" in supplied:
        schedule.subgroup_id = resolve_subgroup_reference(
            db,
            payload.subgroup_id,
            schedule.group_id,
            schedule.subject_id,
        )
    scope_changed = schedule.group_id != before["group_id"] or schedule.subject_id != before["subject_id"]
    if "subgroup_id" in supplied or scope_changed:
        enforce_subgroup_scope(db, schedule)

    after = snapshot(schedule, SNAPSHOT_FIELDS)
    mutated = [field for field in SNAPSHOT_FIELDS if before[field] != after[field]]
    log_activity(
        db,
        user=actor,
        action=ActivityAction.update,
        entity_type=SCHEDULE_ENTITY,
        entity_id=schedule.id,
        details={
            "before": {field: before[field] for field in mutated},
            "after": {field: after[field] for field in mutated},
        },
        ip_address=ip_address,
    )
    if mutated:
        notify_schedule_change(db, schedule=schedule, title="Schedule entry changed", actor=actor)
    logger.info("Schedule %s updated by %s (fields: %s)", schedule.id, actor.id, ", ".join(mutated) or "none")
    return schedule


def soft_delete_schedule(
    db: Session,
    *,
    actor: User,
    schedule_id: str | None,
    ip_address: str | None = None,
) -> Schedule:
    ensure_schedule_editor(actor)
    if not schedule_id:
        raise InvalidRequestError("Schedule id is required")
    schedule = db.get(Schedule, schedule_id)
    if schedule is None or not schedule.is_active:
        raise ResourceNotFoundError(SCHEDULE_ENTITY, schedule_id)

    before = snapshot(schedule, SNAPSHOT_FIELDS)
    schedule.is_active = False
    log_activity(
        db,
        user=actor,
        action=ActivityAction.delete,
        entity_type=SCHEDULE_ENTITY,
        entity_id=schedule.id,
        details={
            "before": before,
            "changes": [{"field": "is_active", "old_value": True, "new_value": False}],
        },
        ip_address=ip_address,
    )
    notify_schedule_change(db, schedule=schedule, title="Schedule entry cancelled", actor=actor)
    logger.info("Schedule %s deactivated by %s", schedule.id, actor.id)
    return schedule


@contextmanager
def audited_schedule_change(
    db: Session,
    *,
    actor: User,
    action: ActivityAction,
    entity_id: str | None = None,
    ip_address: str | None = None,
) -> Iterator[None]:
    """Commit on success; on failure roll back and record a FAILURE audit entry."""
    try:
        yield
        db.commit()
    except AppError as exc:
        record_failure(
            db,
            user=actor,
            action=action,
            entity_type=SCHEDULE_ENTITY,
            entity_id=entity_id,
            error=exc.message,
            ip_address=ip_address,
        )
        raise
    except SQLAlchemyError as exc:
        logger.exception("Schedule %s failed for entity %s", action.value, entity_id)
        record_failure(
            db,
            user=actor,
            action=action,
            entity_type=SCHEDULE_ENTITY,
            entity_id=entity_id,
            error=type(exc).__name__,
            ip_address=ip_address,
        )
        raise InternalServiceError() from exc


def serialize_schedules(db: Session, schedules: list[Schedule]) -> list[ScheduleOut]:
    subject_ids = {item.subject_id for item in schedules}
    group_ids = {item.group_id for item in schedules if item.group_id}
    subjects = {
        item.id: EntitySummary.model_validate(item)
        for item in db.execute(select(Subject).where(Subject.id.in_(subject_ids))).scalars()
    } if subject_ids else {}
    groups = {
        item.id: EntitySummary.model_validate(item)
        for item in db.execute(select(Group).where(Group.id.in_(group_ids))).scalars()
    } if group_ids else {}

    output: list[ScheduleOut] = []
    for item in schedules:
        entry = ScheduleOut.model_validate(item)
        entry.subject = subjects.get(item.subject_id)
        entry.group = groups.get(item.group_id) if item.group_id else None
        output.append(entry)
    return output

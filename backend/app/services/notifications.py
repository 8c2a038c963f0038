from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.group import Group
from app.models.notification import Notification, NotificationType
from app.models.schedule import Schedule
from app.models.subject import Subject
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    *,
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.system,
    schedule_id: str | None = None,
) -> Notification:
    record = Notification(
        user_id=user_id,
        schedule_id=schedule_id,
        title=title,
        message=message,
        notification_type=notification_type,
    )
    db.add(record)
    return record


def notify_users(
    db: Session,
    *,
    user_ids: list[str] | set[str] | tuple[str, ...],
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.system,
    exclude_user_id: str | None = None,
    schedule_id: str | None = None,
) -> list[Notification]:
    requested_ids = [item for item in dict.fromkeys(user_ids) if item and item != exclude_user_id]
    if not requested_ids:
        return []

    recipients = list(
        db.execute(
            select(User.id).where(
                User.id.in_(requested_ids),
                User.is_active.is_(True),
            )
        ).scalars()
    )
    return [
        create_notification(
            db,
            user_id=recipient_id,
            title=title,
            message=message,
            notification_type=notification_type,
            schedule_id=schedule_id,
        )
        for recipient_id in recipients
    ]


def schedule_audience(db: Session, schedule: Schedule) -> list[str]:
    """Students of the entry's group plus the subject's lecturer."""
    user_ids: list[str] = []
    if schedule.group_id:
        user_ids.extend(
            db.execute(
                select(User.id).where(
                    User.group_id == schedule.group_id,
                    User.role == UserRole.student,
                )
            ).scalars()
        )
    subject = db.get(Subject, schedule.subject_id)
    if subject is not None and subject.lecturer_id:
        user_ids.append(subject.lecturer_id)
    return user_ids


def _describe(db: Session, schedule: Schedule) -> str:
    subject = db.get(Subject, schedule.subject_id)
    group = db.get(Group, schedule.group_id) if schedule.group_id else None
    label = subject.name if subject is not None else schedule.subject_id
    if group is not None:
        label = f"{label} ({group.name})"
    return f"{label} on {schedule.date.isoformat()} {schedule.start_time}-{schedule.end_time}"


def notify_schedule_change(db: Session, *, schedule: Schedule, title: str, actor: User | None) -> None:
    """Queue in-app notifications for a schedule change; failures are logged and swallowed."""
    if not get_settings().notify_on_schedule_change:
        return
    try:
        # A failed insert only rolls back to here, never the schedule write itself.
        with db.begin_nested():
            notify_users(
                db,
                user_ids=schedule_audience(db, schedule),
                title=title,
                message=_describe(db, schedule),
                notification_type=NotificationType.schedule,
                exclude_user_id=actor.id if actor is not None else None,
                schedule_id=schedule.id,
            )
    except SQLAlchemyError:
        logger.warning("Unable to queue notifications for schedule %s", schedule.id, exc_info=True)

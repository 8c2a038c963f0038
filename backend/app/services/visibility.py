from __future__ import annotations

from dataclasses import dataclass
import datetime as dt

from sqlalchemy import ColumnElement, or_, select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.group import UserGroup
from app.models.schedule import Schedule
from app.models.subject import Subject
from app.models.user import User, UserRole
from app.services.subgroups import admissible_subgroup_references


@dataclass(frozen=True)
class ScheduleQuery:
    subject_id: str | None = None
    group_id: str | None = None
    on_date: dt.date | None = None
    date_from: dt.date | None = None
    date_to: dt.date | None = None
    lecturer_scope: bool = False
    mentor_scope: bool = False
    include_inactive: bool = False


def load_membership(db: Session, *, user_id: str, group_id: str) -> UserGroup | None:
    return db.execute(
        select(UserGroup).where(UserGroup.user_id == user_id, UserGroup.group_id == group_id)
    ).scalar_one_or_none()


def student_subgroup_clause(db: Session, user: User) -> ColumnElement[bool]:
    membership = load_membership(db, user_id=user.id, group_id=user.group_id)
    numbers = [number for _, number in membership.subgroup_numbers()] if membership is not None else []
    references = admissible_subgroup_references(
        db,
        group_id=user.group_id,
        numbers=numbers,
        mode=get_settings().subgroup_visibility_mode,
    )
    if not references:
        return Schedule.subgroup_id.is_(None)
    return or_(Schedule.subgroup_id.is_(None), Schedule.subgroup_id.in_(references))


def build_schedule_predicate(db: Session, user: User, query: ScheduleQuery) -> list[ColumnElement[bool]]:
    clauses: list[ColumnElement[bool]] = []
    if not query.include_inactive:
        clauses.append(Schedule.is_active.is_(True))

    group_id = query.group_id
    student_scoped = user.role == UserRole.student and bool(user.group_id)
    if student_scoped:
        group_id = user.group_id

    if query.subject_id:
        clauses.append(Schedule.subject_id == query.subject_id)
    if group_id:
        clauses.append(Schedule.group_id == group_id)
    if query.on_date is not None:
        clauses.append(Schedule.date == query.on_date)
    if query.date_from is not None:
        clauses.append(Schedule.date >= query.date_from)
    if query.date_to is not None:
        clauses.append(Schedule.date <= query.date_to)

    if student_scoped:
        clauses.append(student_subgroup_clause(db, user))

    if user.role == UserRole.lecturer or query.lecturer_scope:
        lecturer_subjects = select(Subject.id).where(Subject.lecturer_id == user.id)
        clauses.append(Schedule.subject_id.in_(lecturer_subjects))

    if user.role == UserRole.mentor or query.mentor_scope:
        clauses.append(Schedule.group_id.in_(list(user.mentor_group_ids or [])))

    return clauses


def list_visible_schedules(db: Session, user: User, query: ScheduleQuery) -> list[Schedule]:
    statement = (
        select(Schedule)
        .where(*build_schedule_predicate(db, user, query))
        .order_by(Schedule.date.asc(), Schedule.start_time.asc(), Schedule.id.asc())
    )
    return list(db.execute(statement).scalars())


def is_schedule_visible(db: Session, user: User, schedule: Schedule) -> bool:
    clauses = build_schedule_predicate(db, user, ScheduleQuery(include_inactive=True))
    if not clauses:
        return True
    match = db.execute(
        select(Schedule.id).where(Schedule.id == schedule.id, *clauses)
    ).scalar_one_or_none()
    return match is not None

import datetime as dt
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, request_ip
from app.core.config import get_settings
from app.core.exceptions import InvalidRequestError, ResourceNotFoundError
from app.models.activity_log import ActivityAction
from app.models.group import Group
from app.models.user import User, UserRole
from app.schemas.schedule import ScheduleDeleteOut, ScheduleOut
from app.services.calendar_export import build_events, default_export_window, export_filename, render_calendar
from app.services.schedules import (
    SCHEDULE_ENTITY,
    audited_schedule_change,
    create_schedule,
    get_schedule,
    serialize_schedules,
    soft_delete_schedule,
    update_schedule,
)
from app.services.visibility import ScheduleQuery, is_schedule_visible, list_visible_schedules

router = APIRouter()


def _payload_id(payload: Any) -> str | None:
    if isinstance(payload, dict) and isinstance(payload.get("id"), str):
        return payload["id"]
    return None


@router.get("", response_model=list[ScheduleOut])
def list_schedules(
    subject_id: str | None = Query(default=None, alias="subjectId"),
    group_id: str | None = Query(default=None, alias="groupId"),
    on_date: dt.date | None = Query(default=None, alias="date"),
    lector: bool = False,
    mentor: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ScheduleOut]:
    query = ScheduleQuery(
        subject_id=subject_id or None,
        group_id=group_id or None,
        on_date=on_date,
        lecturer_scope=lector,
        mentor_scope=mentor,
    )
    return serialize_schedules(db, list_visible_schedules(db, current_user, query))


@router.get("/export", response_class=Response)
def export_schedule(
    subject_id: str | None = Query(default=None, alias="subjectId"),
    group_id: str | None = Query(default=None, alias="groupId"),
    start_date: dt.date | None = Query(default=None, alias="startDate"),
    end_date: dt.date | None = Query(default=None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    settings = get_settings()
    if start_date is None and end_date is None:
        start_date, end_date = default_export_window(dt.date.today(), settings.calendar_default_months)
    if start_date is not None and end_date is not None and start_date > end_date:
        raise InvalidRequestError("startDate must not be after endDate")

    query = ScheduleQuery(
        subject_id=subject_id or None,
        group_id=group_id or None,
        date_from=start_date,
        date_to=end_date,
    )
    schedules = list_visible_schedules(db, current_user, query)

    home_group = None
    if current_user.role == UserRole.student and current_user.group_id:
        home_group = db.get(Group, current_user.group_id)
    calendar_name = settings.calendar_name
    if home_group is not None:
        calendar_name = f"{calendar_name} - {home_group.name}"

    content = render_calendar(
        build_events(db, schedules, timezone=settings.calendar_timezone),
        calendar_name=calendar_name,
        timezone=settings.calendar_timezone,
        uid_domain=settings.calendar_uid_domain,
    )
    filename = export_filename(home_group.name if home_group is not None else None)
    return Response(
        content=content,
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{schedule_id}", response_model=ScheduleOut)
def read_schedule(
    schedule_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    schedule = get_schedule(db, schedule_id)
    if not is_schedule_visible(db, current_user, schedule):
        raise ResourceNotFoundError(SCHEDULE_ENTITY, schedule_id)
    return serialize_schedules(db, [schedule])[0]


@router.post("", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def create_schedule_entry(
    request: Request,
    payload: Any = Body(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    ip_address = request_ip(request)
    with audited_schedule_change(db, actor=current_user, action=ActivityAction.create, ip_address=ip_address):
        schedule = create_schedule(db, actor=current_user, payload=payload, ip_address=ip_address)
    db.refresh(schedule)
    return serialize_schedules(db, [schedule])[0]


@router.put("", response_model=ScheduleOut)
def update_schedule_entry(
    request: Request,
    payload: Any = Body(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    ip_address = request_ip(request)
    with audited_schedule_change(
        db,
        actor=current_user,
        action=ActivityAction.update,
        entity_id=_payload_id(payload),
        ip_address=ip_address,
    ):
        schedule = update_schedule(db, actor=current_user, payload=payload, ip_address=ip_address)
    db.refresh(schedule)
    return serialize_schedules(db, [schedule])[0]


@router.delete("", response_model=ScheduleDeleteOut)
def delete_schedule_entry(
    request: Request,
    schedule_id: str | None = Query(default=None, alias="id"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleDeleteOut:
    ip_address = request_ip(request)
    with audited_schedule_change(
        db,
        actor=current_user,
        action=ActivityAction.delete,
        entity_id=schedule_id,
        ip_address=ip_address,
    ):
        schedule = soft_delete_schedule(db, actor=current_user, schedule_id=schedule_id, ip_address=ip_address)
    return ScheduleDeleteOut(message="Schedule entry deleted", id=schedule.id)

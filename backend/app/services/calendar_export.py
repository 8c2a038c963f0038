"""Render schedule entries as an iCalendar (RFC 5545) feed.

Entries are emitted in UTC; wall-clock times are interpreted in
``settings.calendar_timezone``.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
import datetime as dt
import re
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.group import Group
from app.models.schedule import Schedule
from app.models.subgroup import Subgroup
from app.models.subject import Subject
from app.models.user import User

CRLF = "\r\n"
FOLD_WIDTH = 75
PRODUCT_ID = "-//Campus Schedule//Schedule Export//EN"


@dataclass
class CalendarEvent:
    uid: str
    summary: str
    start: dt.datetime
    end: dt.datetime
    description: str = ""
    location: str | None = None
    organizer_name: str | None = None
    organizer_email: str | None = None


def escape_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def fold_line(line: str) -> str:
    """Split content lines longer than 75 characters; continuations start with a space."""
    if len(line) <= FOLD_WIDTH:
        return line
    parts = [line[:FOLD_WIDTH]]
    rest = line[FOLD_WIDTH:]
    while rest:
        parts.append(" " + rest[: FOLD_WIDTH - 1])
        rest = rest[FOLD_WIDTH - 1 :]
    return CRLF.join(parts)


def format_utc(moment: dt.datetime) -> str:
    return moment.astimezone(dt.timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def add_months(day: dt.date, months: int) -> dt.date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return dt.date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def default_export_window(today: dt.date, months: int) -> tuple[dt.date, dt.date]:
    return today, add_months(today, months)


def export_filename(group_name: str | None) -> str:
    if not group_name:
        return "schedule.ics"
    return f"schedule_{re.sub(r'[^A-Za-z0-9_-]', '_', group_name)}.ics"


def _wall_clock(day: dt.date, hhmm: str, zone: ZoneInfo) -> dt.datetime:
    hours, minutes = hhmm.split(":")
    return dt.datetime.combine(day, dt.time(int(hours), int(minutes)), tzinfo=zone)


def _by_id(db: Session, model, ids: set[str]) -> dict:
    if not ids:
        return {}
    return {item.id: item for item in db.execute(select(model).where(model.id.in_(ids))).scalars()}


def build_events(db: Session, schedules: list[Schedule], *, timezone: str) -> list[CalendarEvent]:
    zone = ZoneInfo(timezone)
    subjects = _by_id(db, Subject, {item.subject_id for item in schedules})
    groups = _by_id(db, Group, {item.group_id for item in schedules if item.group_id})
    subgroups = _by_id(db, Subgroup, {item.subgroup_id for item in schedules if item.subgroup_id})
    lecturers = _by_id(db, User, {item.lecturer_id for item in subjects.values() if item.lecturer_id})

    events: list[CalendarEvent] = []
    for item in schedules:
        subject = subjects.get(item.subject_id)
        group = groups.get(item.group_id)
        subgroup = subgroups.get(item.subgroup_id)

        summary = subject.name if subject is not None else "Class"
        if group is not None:
            audience = group.name if subgroup is None else f"{group.name} - {subgroup.name}"
            summary = f"{summary} ({audience})"

        notes = [
            subject.description if subject is not None else None,
            item.description,
            f"Type: {item.event_type}" if item.event_type else None,
        ]
        lecturer = lecturers.get(subject.lecturer_id) if subject is not None else None
        events.append(
            CalendarEvent(
                uid=item.id,
                summary=summary,
                start=_wall_clock(item.date, item.start_time, zone),
                end=_wall_clock(item.date, item.end_time, zone),
                description="\n\n".join(note for note in notes if note),
                location=item.location,
                organizer_name=lecturer.name if lecturer is not None else None,
                organizer_email=lecturer.email if lecturer is not None else None,
            )
        )
    return events


def render_calendar(
    events: list[CalendarEvent],
    *,
    calendar_name: str,
    timezone: str,
    uid_domain: str,
    generated_at: dt.datetime | None = None,
) -> str:
    stamp = format_utc(generated_at or dt.datetime.now(dt.timezone.utc))
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODUCT_ID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{escape_text(calendar_name)}",
        f"X-WR-TIMEZONE:{timezone}",
    ]
    for event in events:
        lines.extend(
            [
                "BEGIN:VEVENT",
                f"UID:{event.uid}@{uid_domain}",
                f"DTSTAMP:{stamp}",
                f"DTSTART:{format_utc(event.start)}",
                f"DTEND:{format_utc(event.end)}",
                f"SUMMARY:{escape_text(event.summary)}",
            ]
        )
        if event.description:
            lines.append(f"DESCRIPTION:{escape_text(event.description)}")
        if event.location:
            lines.append(f"LOCATION:{escape_text(event.location)}")
        if event.organizer_email:
            name = escape_text(event.organizer_name or event.organizer_email)
            lines.append(f'ORGANIZER;CN="{name}":mailto:{event.organizer_email}')
        lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    return CRLF.join(fold_line(line) for line in lines) + CRLF

import datetime as dt

from app.models.user import UserRole
from app.services.calendar_export import (
    CalendarEvent,
    add_months,
    escape_text,
    export_filename,
    fold_line,
    render_calendar,
)

MARCH = {"startDate": "2025-03-01", "endDate": "2025-03-31"}


def test_student_export_contains_group_and_own_subgroup_entries(
    client, make_user, make_group, make_subject, make_membership, make_schedule, auth_headers
):
    group = make_group("ECON 21")
    other = make_group("LAW-21")
    lecturer = make_user(UserRole.lecturer, name="Grace Hopper")
    subject = make_subject("Finance", lecturer_id=lecturer.id)
    student = make_user(UserRole.student, group_id=group.id)
    make_membership(student, group, subgroup_finance=1)
    whole = make_schedule(subject, group=group, location="Room 1, east wing")
    own = make_schedule(subject, group=group, subgroup_id="1", on_date=dt.date(2025, 3, 20))
    foreign_subgroup = make_schedule(subject, group=group, subgroup_id="2")
    foreign_group = make_schedule(subject, group=other)
    inactive = make_schedule(subject, group=group, is_active=False)
    out_of_range = make_schedule(subject, group=group, on_date=dt.date(2025, 4, 2))

    response = client.get("/api/schedules/export", params=MARCH, headers=auth_headers(student))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/calendar")
    assert response.headers["content-disposition"] == 'attachment; filename="schedule_ECON_21.ics"'
    body = response.text
    assert body.startswith("BEGIN:VCALENDAR\r\n")
    assert body.endswith("END:VCALENDAR\r\n")
    assert f"UID:{whole.id}@" in body
    assert f"UID:{own.id}@" in body
    for hidden in (foreign_subgroup, foreign_group, inactive, out_of_range):
        assert hidden.id not in body
    assert body.count("BEGIN:VEVENT") == 2
    assert "SUMMARY:Finance (ECON 21)" in body
    assert "LOCATION:Room 1\\, east wing" in body
    assert 'ORGANIZER;CN="Grace Hopper":mailto:' in body
    # 09:00 in Moscow is 06:00 UTC
    assert "DTSTART:20250314T060000Z" in body
    assert "DTEND:20250314T073000Z" in body


def test_export_respects_filters_for_staff(client, make_user, make_group, make_subject, make_schedule, auth_headers):
    admin = make_user(UserRole.admin)
    econ = make_group("ECON-21")
    law = make_group("LAW-21")
    finance = make_subject("Finance")
    kept = make_schedule(finance, group=econ)
    dropped = make_schedule(finance, group=law)

    response = client.get(
        "/api/schedules/export",
        params={**MARCH, "groupId": econ.id},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="schedule.ics"'
    assert kept.id in response.text
    assert dropped.id not in response.text


def test_export_defaults_to_upcoming_window(client, make_user, make_group, make_subject, make_schedule, auth_headers):
    admin = make_user(UserRole.admin)
    group = make_group("ECON-21")
    subject = make_subject("Finance")
    today = dt.date.today()
    upcoming = make_schedule(subject, group=group, on_date=today)
    past = make_schedule(subject, group=group, on_date=today - dt.timedelta(days=1))
    far = make_schedule(subject, group=group, on_date=add_months(today, 4))

    body = client.get("/api/schedules/export", headers=auth_headers(admin)).text

    assert upcoming.id in body
    assert past.id not in body
    assert far.id not in body


def test_export_rejects_inverted_range(client, make_user, auth_headers):
    admin = make_user(UserRole.admin)

    response = client.get(
        "/api/schedules/export",
        params={"startDate": "2025-03-31", "endDate": "2025-03-01"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 400


def test_export_requires_authentication(client):
    assert client.get("/api/schedules/export").status_code == 401


def test_escape_and_fold():
    assert escape_text("a,b;c\\d\ne") == "a\\,b\\;c\\\\d\\ne"
    assert fold_line("x" * 75) == "x" * 75

    folded = fold_line("SUMMARY:" + "y" * 150).split("\r\n")
    assert len(folded[0]) == 75
    assert all(part.startswith(" ") and len(part) <= 75 for part in folded[1:])
    assert "".join([folded[0], *(part[1:] for part in folded[1:])]) == "SUMMARY:" + "y" * 150


def test_add_months_clamps_to_month_end():
    assert add_months(dt.date(2025, 1, 31), 1) == dt.date(2025, 2, 28)
    assert add_months(dt.date(2025, 11, 15), 3) == dt.date(2026, 2, 15)


def test_export_filename_is_sanitised():
    assert export_filename("ECON/21 (a)") == "schedule_ECON_21__a_.ics"
    assert export_filename(None) == "schedule.ics"


def test_render_calendar_is_stable_for_fixed_stamp():
    start = dt.datetime(2025, 3, 14, 6, 0, tzinfo=dt.timezone.utc)
    event = CalendarEvent(uid="e-1", summary="Finance", start=start, end=start + dt.timedelta(minutes=90))

    content = render_calendar(
        [event],
        calendar_name="Course schedule",
        timezone="Europe/Moscow",
        uid_domain="example.test",
        generated_at=dt.datetime(2025, 3, 1, tzinfo=dt.timezone.utc),
    )

    assert content.split("\r\n") == [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Campus Schedule//Schedule Export//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "X-WR-CALNAME:Course schedule",
        "X-WR-TIMEZONE:Europe/Moscow",
        "BEGIN:VEVENT",
        "UID:e-1@example.test",
        "DTSTAMP:20250301T000000Z",
        "DTSTART:20250314T060000Z",
        "DTEND:20250314T073000Z",
        "SUMMARY:Finance",
        "END:VEVENT",
        "END:VCALENDAR",
        "",
    ]

import datetime as dt

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.config import get_settings
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.models.group import Group, UserGroup
from app.models.schedule import Schedule
from app.models.subgroup import Subgroup
from app.models.subject import Subject
from app.models.user import User, UserRole
from app.services.schedules import day_of_week_for


@pytest.fixture()
def session_factory():
    # one shared in-memory database per test
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def visibility_mode(monkeypatch):
    def set_mode(mode: str) -> None:
        monkeypatch.setattr(get_settings(), "subgroup_visibility_mode", mode)

    return set_mode


@pytest.fixture()
def make_user(db_session):
    counter = {"value": 0}

    def factory(role: UserRole, *, group_id=None, mentor_group_ids=None, name=None) -> User:
        counter["value"] += 1
        user = User(
            name=name or f"{role.value.title()} {counter['value']}",
            email=f"{role.value}-{counter['value']}@example.com",
            hashed_password="not-a-real-hash",
            role=role,
            group_id=group_id,
            mentor_group_ids=list(mentor_group_ids or []),
        )
        db_session.add(user)
        db_session.commit()
        return user

    return factory


@pytest.fixture()
def auth_headers():
    def build(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return build


@pytest.fixture()
def make_group(db_session):
    def factory(name: str, **kwargs) -> Group:
        group = Group(name=name, **kwargs)
        db_session.add(group)
        db_session.commit()
        return group

    return factory


@pytest.fixture()
def make_subject(db_session):
    def factory(name: str, *, lecturer_id=None) -> Subject:
        subject = Subject(name=name, lecturer_id=lecturer_id)
        db_session.add(subject)
        db_session.commit()
        return subject

    return factory


@pytest.fixture()
def make_subgroup(db_session):
    def factory(group: Group, number: int, *, subject: Subject | None = None, id=None, is_active=True) -> Subgroup:
        subgroup = Subgroup(
            group_id=group.id,
            subject_id=subject.id if subject is not None else None,
            number=number,
            name=f"Subgroup {number}",
            is_active=is_active,
        )
        if id is not None:
            subgroup.id = id
        db_session.add(subgroup)
        db_session.commit()
        return subgroup

    return factory


@pytest.fixture()
def make_membership(db_session):
    def factory(user: User, group: Group, **numbers) -> UserGroup:
        membership = UserGroup(user_id=user.id, group_id=group.id, **numbers)
        db_session.add(membership)
        db_session.commit()
        return membership

    return factory


@pytest.fixture()
def make_schedule(db_session):
    def factory(
        subject: Subject,
        *,
        group: Group | None = None,
        subgroup_id: str | None = None,
        on_date: dt.date = dt.date(2025, 3, 14),
        start_time: str = "09:00",
        end_time: str = "10:30",
        is_active: bool = True,
        location: str | None = None,
    ) -> Schedule:
        schedule = Schedule(
            subject_id=subject.id,
            group_id=group.id if group is not None else None,
            subgroup_id=subgroup_id,
            date=on_date,
            day_of_week=day_of_week_for(on_date),
            start_time=start_time,
            end_time=end_time,
            location=location,
            is_active=is_active,
        )
        db_session.add(schedule)
        db_session.commit()
        return schedule

    return factory

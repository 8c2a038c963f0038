from __future__ import annotations

import logging

from sqlalchemy import inspect

from app.core.config import get_settings
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "group_id", "mentor_group_ids"},
    "groups": {"id", "name", "is_active"},
    "subjects": {"id", "name", "lecturer_id"},
    "subgroups": {"id", "group_id", "subject_id", "number", "is_active"},
    "user_groups": {
        "id",
        "user_id",
        "group_id",
        "subgroup_commerce",
        "subgroup_tutorial",
        "subgroup_finance",
        "subgroup_system_thinking",
    },
    "schedules": {"id", "subject_id", "group_id", "subgroup_id", "date", "day_of_week", "is_active"},
    "activity_logs": {"id", "action", "entity_type", "entity_id", "result", "details"},
}


def find_schema_gaps(connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(columns - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_schema() -> None:
    """Create missing tables on startup when ``auto_create_schema`` is enabled.

    Production deployments run ``alembic upgrade head`` instead; this only covers
    local development databases.
    """
    if not get_settings().auto_create_schema:
        return
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    with engine.connect() as connection:
        missing_tables, missing_columns = find_schema_gaps(connection)
    if missing_tables or missing_columns:
        logger.warning(
            "Database schema drift detected (tables=%s, columns=%s); run `alembic upgrade head`",
            missing_tables,
            missing_columns,
        )

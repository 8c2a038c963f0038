import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, DateTime, Enum as SAEnum, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class UserRole(str, Enum):
    admin = "admin"
    student = "student"
    lecturer = "lecturer"
    assistant = "assistant"
    co_lecturer = "co_lecturer"
    mentor = "mentor"
    education_office_head = "education_office_head"
    department_admin = "department_admin"


# Roles allowed to create, update and soft-delete schedule entries.
SCHEDULE_EDITOR_ROLES = frozenset({UserRole.admin, UserRole.lecturer})
AUDIT_VIEWER_ROLES = frozenset({UserRole.admin, UserRole.education_office_head, UserRole.department_admin})


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(SAEnum(UserRole, name="user_role"), nullable=False)
    group_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    mentor_group_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class Group(Base):
    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    semester: Mapped[int | None] = mapped_column(Integer, nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())


class MembershipDimension(str, Enum):
    commerce = "commerce"
    tutorial = "tutorial"
    finance = "finance"
    system_thinking = "system_thinking"


DIMENSION_COLUMNS: dict[MembershipDimension, str] = {
    MembershipDimension.commerce: "subgroup_commerce",
    MembershipDimension.tutorial: "subgroup_tutorial",
    MembershipDimension.finance: "subgroup_finance",
    MembershipDimension.system_thinking: "subgroup_system_thinking",
}


class UserGroup(Base):
    """A user's membership in a group plus one subgroup ordinal per dimension."""

    __tablename__ = "user_groups"
    __table_args__ = (
        UniqueConstraint("user_id", "group_id", name="uq_user_groups_user_group"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    group_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    subgroup_commerce: Mapped[int | None] = mapped_column(Integer, nullable=True)
    subgroup_tutorial: Mapped[int | None] = mapped_column(Integer, nullable=True)
    subgroup_finance: Mapped[int | None] = mapped_column(Integer, nullable=True)
    subgroup_system_thinking: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    def subgroup_numbers(self) -> list[tuple[MembershipDimension, int]]:
        pairs: list[tuple[MembershipDimension, int]] = []
        for dimension, column in DIMENSION_COLUMNS.items():
            value = getattr(self, column)
            if value is not None:
                pairs.append((dimension, value))
        return pairs

    def set_subgroup_numbers(self, numbers: dict[MembershipDimension, int | None]) -> None:
        for dimension, column in DIMENSION_COLUMNS.items():
            setattr(self, column, numbers.get(dimension))

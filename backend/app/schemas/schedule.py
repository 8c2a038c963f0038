from __future__ import annotations

import datetime as dt
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class ScheduleFields(BaseModel):
    """Writable schedule fields; every one is optional so presence is checked by the service."""

    subject_id: str | None = Field(default=None, max_length=36, alias="subjectId")
    group_id: str | None = Field(default=None, max_length=36, alias="groupId")
    # Raw client reference: an ordinal ("2"), a subgroup id, "", "none" or null.
    subgroup_id: str | None = Field(default=None, alias="subgroupId")
    date: dt.date | None = None
    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")
    location: str | None = Field(default=None, max_length=200)
    event_type: str | None = Field(default=None, max_length=50, alias="eventType")
    description: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("subgroup_id", mode="before")
    @classmethod
    def coerce_subgroup_reference(cls, value: object) -> object:
        # Unusable references degrade to the whole group instead of failing the write.
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return str(value)
        if isinstance(value, str):
            return value
        return None

    @field_validator("date", mode="before")
    @classmethod
    def strip_time_component(cls, value: object) -> object:
        # Clients send either "2025-03-14" or a full ISO timestamp.
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("subject_id", "group_id", "start_time", "end_time")
    @classmethod
    def strip_blank(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()


class ScheduleCreate(ScheduleFields):
    pass


class ScheduleUpdate(ScheduleFields):
    id: str | None = Field(default=None, max_length=36)


class EntitySummary(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class ScheduleOut(BaseModel):
    id: str
    subject_id: str = Field(alias="subjectId")
    group_id: str | None = Field(alias="groupId")
    subgroup_id: str | None = Field(alias="subgroupId")
    date: dt.date
    day_of_week: int = Field(alias="dayOfWeek")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    location: str | None
    event_type: str | None = Field(alias="eventType")
    description: str | None
    is_active: bool = Field(alias="isActive")
    created_at: dt.datetime | None = Field(default=None, alias="createdAt")
    updated_at: dt.datetime | None = Field(default=None, alias="updatedAt")
    subject: EntitySummary | None = None
    group: EntitySummary | None = None

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class ScheduleDeleteOut(BaseModel):
    message: str
    id: str

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SubgroupCreate(BaseModel):
    subject_id: str | None = Field(default=None, max_length=36, alias="subjectId")
    name: str = Field(min_length=1, max_length=200)
    number: int = Field(ge=1, le=9999)
    description: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("subject_id")
    @classmethod
    def normalize_subject_id(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


class SubgroupUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None


class SubgroupOut(BaseModel):
    id: str
    group_id: str = Field(alias="groupId")
    subject_id: str | None = Field(alias="subjectId")
    number: int
    name: str
    description: str | None
    is_active: bool = Field(alias="isActive")
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

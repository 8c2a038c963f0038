from datetime import datetime

from pydantic import BaseModel, Field


class SubjectBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    lecturer_id: str | None = Field(default=None, max_length=36)


class SubjectCreate(SubjectBase):
    pass


class SubjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    lecturer_id: str | None = Field(default=None, max_length=36)


class SubjectOut(SubjectBase):
    id: str
    created_at: datetime

    model_config = {"from_attributes": True}

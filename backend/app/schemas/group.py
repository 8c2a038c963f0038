from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.group import MembershipDimension


class GroupBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    semester: int | None = Field(default=None, ge=1, le=12)
    year: int | None = Field(default=None, ge=1900, le=3000)


class GroupCreate(GroupBase):
    pass


class GroupUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    semester: int | None = Field(default=None, ge=1, le=12)
    year: int | None = Field(default=None, ge=1900, le=3000)
    is_active: bool | None = None


class GroupOut(GroupBase):
    id: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class MembershipSubgroupsUpdate(BaseModel):
    subgroup_commerce: int | None = Field(default=None, ge=1, le=9999, alias="subgroupCommerce")
    subgroup_tutorial: int | None = Field(default=None, ge=1, le=9999, alias="subgroupTutorial")
    subgroup_finance: int | None = Field(default=None, ge=1, le=9999, alias="subgroupFinance")
    subgroup_system_thinking: int | None = Field(default=None, ge=1, le=9999, alias="subgroupSystemThinking")

    model_config = ConfigDict(populate_by_name=True)

    def as_dimensions(self) -> dict[MembershipDimension, int | None]:
        return {
            MembershipDimension.commerce: self.subgroup_commerce,
            MembershipDimension.tutorial: self.subgroup_tutorial,
            MembershipDimension.finance: self.subgroup_finance,
            MembershipDimension.system_thinking: self.subgroup_system_thinking,
        }


class MembershipOut(MembershipSubgroupsUpdate):
    id: str
    user_id: str = Field(alias="userId")
    group_id: str = Field(alias="groupId")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

from datetime import datetime

from pydantic import BaseModel

from app.models.activity_log import ActivityResult


class ActivityLogOut(BaseModel):
    id: str
    user_id: str | None
    action: str
    entity_type: str | None
    entity_id: str | None
    ip_address: str | None
    result: ActivityResult
    details: dict
    created_at: datetime

    model_config = {"from_attributes": True}

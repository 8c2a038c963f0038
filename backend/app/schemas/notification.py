from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.notification import NotificationType


class NotificationOut(BaseModel):
    id: str
    schedule_id: str | None = Field(alias="scheduleId")
    notification_type: NotificationType = Field(alias="type")
    title: str
    message: str
    is_read: bool = Field(alias="isRead")
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

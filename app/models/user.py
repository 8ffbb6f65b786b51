from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class NotificationSettingsUpdate(BaseModel):
    email: Optional[EmailStr] = None
    debt_reminders_enabled: Optional[bool] = None
    debt_reminder_days_before: Optional[int] = Field(default=None, ge=0, le=7)


class NotificationSettingsPublic(BaseModel):
    email: Optional[EmailStr] = None
    debt_reminders_enabled: bool = True
    debt_reminder_days_before: int

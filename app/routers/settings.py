"""
Settings Router
Reminder preferences and scheduler status
"""
import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException

from app.core.config import settings
from app.core.security import get_current_user_id
from app.db import dynamo
from app.models.user import NotificationSettingsPublic, NotificationSettingsUpdate
from app.utils.scheduler import get_scheduler_status

router = APIRouter()
logger = logging.getLogger(__name__)


def _current_preferences(user_id: str) -> Dict:
    return dynamo.get_notification_settings(user_id) or {
        "email": None,
        "debt_reminders_enabled": True,
        "debt_reminder_days_before": settings.DEFAULT_DEBT_REMINDER_DAYS,
    }


@router.get("/notifications", response_model=NotificationSettingsPublic)
def get_notification_settings(user_id: str = Depends(get_current_user_id)):
    return NotificationSettingsPublic(**_current_preferences(user_id))


@router.put("/notifications", response_model=NotificationSettingsPublic)
def update_notification_settings(
    preferences: NotificationSettingsUpdate,
    user_id: str = Depends(get_current_user_id),
):
    updates = preferences.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    if not dynamo.save_notification_settings(user_id, updates):
        raise HTTPException(status_code=500, detail="Failed to save notification settings")

    logger.info(f"Updated notification settings for user {user_id}: {sorted(updates)}")
    return NotificationSettingsPublic(**_current_preferences(user_id))


@router.get("/scheduler")
def scheduler_status(user_id: str = Depends(get_current_user_id)) -> Dict:
    return get_scheduler_status()

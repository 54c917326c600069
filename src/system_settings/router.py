from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, List, Optional

from src import models
from src.activity import list_activity, record_activity
from src.auth import permissions
from src.auth.dependencies import get_current_user, require_capability
from src.database import get_db
from src.system_settings.schemas import ActivityLogEntry, Setting, SettingUpsert
from src.system_settings.service import SettingsService

router = APIRouter()

@router.get("/", response_model=Dict[str, Optional[str]])
def get_settings(
    key: Optional[str] = Query(None, description="Return only this key"),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if key:
        return {key: SettingsService.get_setting(db, key)}
    return SettingsService.get_all(db)

@router.post("/", response_model=Setting)
def upsert_setting(
    setting: SettingUpsert,
    current_user: models.User = Depends(require_capability(permissions.SETTINGS_WRITE)),
    db: Session = Depends(get_db)
):
    record_activity(db, current_user.id, "setting_updated", f"Setting {setting.key} updated")
    return SettingsService.set_setting(db, setting.key, setting.value, setting.description)

@router.get("/logs/activity", response_model=List[ActivityLogEntry])
def get_activity_logs(
    user_id: Optional[int] = Query(None),
    action: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: models.User = Depends(require_capability(permissions.SETTINGS_READ)),
    db: Session = Depends(get_db)
):
    """Audit trail, newest first"""
    return list_activity(db, user_id=user_id, action=action, limit=limit, offset=offset)

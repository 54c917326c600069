from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime

class SettingUpsert(BaseModel):
    key: str = Field(..., min_length=1, max_length=255)
    value: Any = None
    description: Optional[str] = None

class Setting(BaseModel):
    setting_key: str
    setting_value: Optional[str] = None
    description: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ActivityLogEntry(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    description: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

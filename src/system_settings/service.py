from typing import Dict, Optional

from sqlalchemy.orm import Session

from src.models import SystemSetting

class SettingsService:
    @staticmethod
    def get_setting(db: Session, key: str) -> Optional[str]:
        setting = db.query(SystemSetting).filter(SystemSetting.setting_key == key).first()
        return setting.setting_value if setting else None

    @staticmethod
    def get_all(db: Session) -> Dict[str, Optional[str]]:
        rows = db.query(SystemSetting).order_by(SystemSetting.setting_key).all()
        return {row.setting_key: row.setting_value for row in rows}

    @staticmethod
    def set_setting(db: Session, key: str, value, description: Optional[str] = None) -> SystemSetting:
        """Insert or update one key; values are stored as text"""
        stored = None if value is None else str(value)
        setting = db.query(SystemSetting).filter(SystemSetting.setting_key == key).first()
        if setting is None:
            setting = SystemSetting(setting_key=key, setting_value=stored, description=description)
            db.add(setting)
        else:
            setting.setting_value = stored
            if description is not None:
                setting.description = description

        db.commit()
        db.refresh(setting)
        return setting

"""简易配置存储，支持加载/保存用户自定义的提醒设置。"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from upmotion.config import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".upmotion" / "config.json"


@dataclass
class UserSettings:
    inactivity_reminder_minutes: int
    notification_cooldown_minutes: int
    notifications_enabled: bool = True

    @classmethod
    def from_config(cls, config: AppConfig) -> "UserSettings":
        return cls(
            inactivity_reminder_minutes=config.inactivity_reminder_minutes,
            notification_cooldown_minutes=config.notification_cooldown_minutes,
            notifications_enabled=config.notifications_enabled,
        )

    def apply_to(self, config: AppConfig) -> AppConfig:
        return config.model_copy(
            update={
                "inactivity_reminder_minutes": self.inactivity_reminder_minutes,
                "notification_cooldown_minutes": self.notification_cooldown_minutes,
                "notifications_enabled": self.notifications_enabled,
            }
        )

    def to_dict(self) -> dict:
        return {
            "inactivity_reminder_minutes": self.inactivity_reminder_minutes,
            "notification_cooldown_minutes": self.notification_cooldown_minutes,
            "notifications_enabled": self.notifications_enabled,
        }


def load_user_settings(path: Optional[Path] = None) -> Optional[UserSettings]:
    cfg_path = path or DEFAULT_CONFIG_PATH
    try:
        if not cfg_path.exists():
            return None
        data = json.loads(cfg_path.read_text(encoding="utf-8"))
        return UserSettings(
            inactivity_reminder_minutes=int(data.get("inactivity_reminder_minutes", 120)),
            notification_cooldown_minutes=int(data.get("notification_cooldown_minutes", 30)),
            notifications_enabled=bool(data.get("notifications_enabled", True)),
        )
    except (OSError, ValueError, TypeError, AttributeError):
        logger.warning("无法读取用户设置 %s", cfg_path, exc_info=True)
        return None


def save_user_settings(settings: UserSettings, path: Optional[Path] = None) -> None:
    cfg_path = path or DEFAULT_CONFIG_PATH
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    cfg_path.write_text(json.dumps(settings.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")

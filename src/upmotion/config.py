"""应用配置模型。"""

from __future__ import annotations

import importlib.util
import logging
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class AppConfig(BaseModel):
    """总配置；分类规则阈值为固定常量，不在此处开放。"""

    window_size: int = Field(20, ge=1)
    tick_interval_ms: int = Field(2000, ge=10)
    buffer_capacity: int = Field(50, ge=1)
    min_samples_for_classification: int = Field(10, ge=0)
    confidence_floor: float = Field(0.3, ge=0.0, le=1.0)
    join_window_ms: int = Field(50, ge=0)
    inactivity_reminder_minutes: int = Field(120, ge=1)
    notification_cooldown_minutes: int = Field(30, ge=1)
    notifications_enabled: bool = True
    simulation_enabled: bool = True
    simulation_sample_interval_ms: int = Field(100, ge=10)
    simulation_phase_seconds: float = Field(30.0, ge=1.0)
    simulation_seed: int | None = None
    api_host: str = "127.0.0.1"
    api_port: int = Field(8000, ge=1, le=65535)

    @classmethod
    def load_default(cls) -> "AppConfig":
        return cls()

    @classmethod
    def load(cls) -> "AppConfig":
        """优先尝试加载项目根目录的 `config.local.py`，否则返回默认配置。"""

        root_dir = Path(__file__).resolve().parents[2]
        local_path = root_dir / "config.local.py"
        if not local_path.exists():
            return cls.load_default()

        spec = importlib.util.spec_from_file_location("config_local", local_path)
        if spec is None or spec.loader is None:
            return cls.load_default()

        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)  # type: ignore[arg-type]
        except Exception:
            logger.warning("无法加载 %s，使用默认配置", local_path, exc_info=True)
            return cls.load_default()

        load_fn = getattr(module, "load_config", None)
        if callable(load_fn):
            try:
                return load_fn()
            except Exception:
                logger.warning("config.local.py 中的 load_config 执行失败，使用默认配置", exc_info=True)
                return cls.load_default()
        return cls.load_default()

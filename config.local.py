"""本地配置覆盖示例（存在时由 AppConfig.load 自动导入）。"""

from upmotion.config import AppConfig


def load_config() -> AppConfig:
    return AppConfig(
        window_size=20,
        tick_interval_ms=2000,
        buffer_capacity=50,
        min_samples_for_classification=10,
        confidence_floor=0.3,
        join_window_ms=50,
        inactivity_reminder_minutes=120,
        notification_cooldown_minutes=30,
        simulation_enabled=True,
        simulation_phase_seconds=30.0,
        # simulation_seed=42,
    )

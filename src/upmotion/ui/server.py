"""FastAPI 应用：查询当前活动与历史，接收外部传感器读数。"""

from __future__ import annotations

import time
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from upmotion.config_store import UserSettings
from upmotion.core.activity_engine import ActivityEngine
from upmotion.core.scorer import score_labels
from upmotion.history import ActivityHistory


class AxisReading(BaseModel):
    x: float
    y: float
    z: float
    timestamp_ms: Optional[int] = Field(None, ge=0)


class StepReading(BaseModel):
    steps: float = Field(..., ge=0)
    timestamp_ms: Optional[int] = Field(None, ge=0)


class SettingsPayload(BaseModel):
    inactivity_reminder_minutes: int = Field(..., ge=1)
    notification_cooldown_minutes: int = Field(..., ge=1)
    notifications_enabled: bool = True


def create_app(
    engine: Optional[ActivityEngine] = None,
    history: Optional[ActivityHistory] = None,
    shared_state: Optional[Any] = None,
) -> FastAPI:
    """构建 FastAPI 应用并注册路由。

    传入 ``shared_state`` 时，引擎与历史记录在后台线程就绪后从中读取。
    """

    app = FastAPI(title="upMotion")
    _engine = engine
    _history = history

    if shared_state is None:
        if _engine is None:
            _engine = ActivityEngine()
        if _history is None:
            _history = ActivityHistory()
            _engine.hub.subscribe(_history)

    def _resolve_engine() -> ActivityEngine:
        resolved = shared_state.engine if shared_state is not None else _engine
        if resolved is None:
            raise HTTPException(status_code=503, detail="engine not ready")
        return resolved

    def _resolve_history() -> ActivityHistory:
        resolved = shared_state.history if shared_state is not None else _history
        if resolved is None:
            raise HTTPException(status_code=503, detail="history not ready")
        return resolved

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/activity", tags=["activity"])
    async def activity() -> dict:
        current = _resolve_engine()
        features = current.current_features()
        result = current.last_result
        payload = {
            "label": current.current_label.value,
            "confidence": result.confidence if result is not None else None,
            "running": current.is_running,
            "buffered_samples": current.buffered_samples,
            "last_changed_at_ms": current.last_emitted_timestamp_ms,
            "features": features.as_dict(),
            "scores": {label.value: score for label, score in score_labels(features).items()},
        }
        if shared_state is not None:
            event = shared_state.get_last_event()
            payload["last_event"] = (
                {"label": event.label.value, "confidence": event.confidence, "timestamp_ms": event.timestamp_ms}
                if event is not None
                else None
            )
        return payload

    @app.get("/history", tags=["activity"])
    async def history_records(limit: Optional[int] = Query(None, ge=1, le=1000)) -> list[dict]:
        return [record.to_dict() for record in _resolve_history().records(limit)]

    @app.delete("/history", tags=["activity"])
    async def clear_history() -> dict[str, bool]:
        _resolve_history().clear()
        return {"cleared": True}

    @app.get("/stats/today", tags=["activity"])
    async def today_stats() -> dict:
        return _resolve_history().today_stats().to_dict()

    @app.get("/stats/week", tags=["activity"])
    async def weekly_stats() -> list[dict]:
        return [
            {"date": day.isoformat(), **stats.to_dict()}
            for day, stats in _resolve_history().weekly_stats()
        ]

    @app.post("/samples/accelerometer", tags=["samples"])
    async def push_accelerometer(reading: AxisReading) -> dict[str, bool]:
        accepted = _resolve_engine().push_accelerometer_sample(
            reading.x, reading.y, reading.z, _timestamp(reading.timestamp_ms)
        )
        return {"accepted": accepted}

    @app.post("/samples/gyroscope", tags=["samples"])
    async def push_gyroscope(reading: AxisReading) -> dict[str, bool]:
        merged = _resolve_engine().push_gyroscope_sample(
            reading.x, reading.y, reading.z, _timestamp(reading.timestamp_ms)
        )
        return {"merged": merged}

    @app.post("/samples/steps", tags=["samples"])
    async def push_steps(reading: StepReading) -> dict[str, bool]:
        accepted = _resolve_engine().push_step_count(reading.steps, _timestamp(reading.timestamp_ms))
        return {"accepted": accepted}

    if shared_state is not None:

        @app.get("/notifications", tags=["system"])
        async def notifications() -> list[dict[str, str]]:
            return [
                {"title": m.title, "subtitle": m.subtitle, "body": m.body}
                for m in shared_state.pop_notifications()
            ]

        @app.get("/settings", tags=["settings"])
        async def get_settings() -> dict:
            settings = shared_state.get_current_settings()
            if settings is None:
                raise HTTPException(status_code=503, detail="settings not ready")
            return settings.to_dict()

        @app.put("/settings", tags=["settings"])
        async def update_settings(payload: SettingsPayload) -> dict:
            settings = UserSettings(
                inactivity_reminder_minutes=payload.inactivity_reminder_minutes,
                notification_cooldown_minutes=payload.notification_cooldown_minutes,
                notifications_enabled=payload.notifications_enabled,
            )
            shared_state.queue_settings_update(settings)
            return {"queued": True, "settings": settings.to_dict()}

    return app


def _timestamp(value: Optional[int]) -> int:
    return value if value is not None else int(time.time() * 1000)

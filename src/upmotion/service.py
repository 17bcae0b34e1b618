"""后台服务：装配分类引擎、订阅者与模拟传感器，并与 API 线程共享状态。"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional

from upmotion.adapters import SensorAdapter, SimulatedMotionAdapter
from upmotion.config import AppConfig
from upmotion.config_store import UserSettings, load_user_settings, save_user_settings
from upmotion.core.activity_engine import ActivityEngine
from upmotion.core.hub import ActivityChanged, ActivitySubscriptionHub
from upmotion.history import ActivityHistory
from upmotion.notifiers import GoalWatcher, InactivityWatcher, LoggingNotifier, NotificationMessage

logger = logging.getLogger(__name__)


@dataclass
class SharedState:
    """共享状态，供 API 线程读取引擎与最新事件。"""

    engine: Optional[ActivityEngine] = None
    history: Optional[ActivityHistory] = None
    last_event: Optional[ActivityChanged] = None
    _notifications: List[NotificationMessage] = field(default_factory=list, init=False, repr=False)
    _current_settings: Optional[UserSettings] = field(default=None, init=False, repr=False)
    _settings_update: Optional[UserSettings] = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _stop_requested: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _ready: threading.Event = field(default_factory=threading.Event, init=False, repr=False)

    def attach(self, engine: ActivityEngine, history: ActivityHistory) -> None:
        with self._lock:
            self.engine = engine
            self.history = history
        self._ready.set()

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        return self._ready.wait(timeout)

    def record_event(self, event: ActivityChanged) -> None:
        with self._lock:
            self.last_event = event

    def get_last_event(self) -> Optional[ActivityChanged]:
        with self._lock:
            return self.last_event

    def push_notification(self, message: NotificationMessage) -> None:
        with self._lock:
            self._notifications.append(message)

    def pop_notifications(self) -> List[NotificationMessage]:
        with self._lock:
            messages = self._notifications
            self._notifications = []
            return messages

    def set_current_settings(self, settings: UserSettings) -> None:
        with self._lock:
            self._current_settings = settings

    def get_current_settings(self) -> Optional[UserSettings]:
        with self._lock:
            return self._current_settings

    def queue_settings_update(self, settings: UserSettings) -> None:
        with self._lock:
            self._settings_update = settings

    def pop_settings_update(self) -> Optional[UserSettings]:
        with self._lock:
            settings = self._settings_update
            self._settings_update = None
            return settings

    def request_stop(self) -> None:
        self._stop_requested.set()

    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()


async def run_backend(shared: SharedState, config: Optional[AppConfig] = None) -> None:
    """运行异步后台服务，直到收到停止请求。"""

    config = config or AppConfig.load()
    user_settings = load_user_settings()
    if user_settings is not None:
        config = user_settings.apply_to(config)
    else:
        user_settings = UserSettings.from_config(config)
    shared.set_current_settings(user_settings)

    hub = ActivitySubscriptionHub()
    engine = ActivityEngine(config, hub=hub)
    history = ActivityHistory()
    notifier = LoggingNotifier()
    watcher = InactivityWatcher(
        notifier,
        reminder_minutes=config.inactivity_reminder_minutes,
        cooldown_minutes=config.notification_cooldown_minutes,
        enabled=config.notifications_enabled,
    )
    hub.subscribe(history)
    goals = GoalWatcher(history, notifier)
    hub.subscribe(goals)
    hub.subscribe(watcher)
    hub.subscribe(shared.record_event)

    adapter: Optional[SensorAdapter] = None
    if config.simulation_enabled:
        adapter = SimulatedMotionAdapter(
            engine,
            sample_interval=config.simulation_sample_interval_ms / 1000,
            phase_seconds=config.simulation_phase_seconds,
            seed=config.simulation_seed,
        )

    await engine.start()
    shared.attach(engine, history)
    if adapter is not None:
        await adapter.start()
        logger.info("已启用模拟传感器")

    poll_interval = config.tick_interval_ms / 1000
    try:
        while not shared.stop_requested():
            pending_settings = shared.pop_settings_update()
            if pending_settings is not None:
                try:
                    save_user_settings(pending_settings)
                except OSError:
                    logger.warning("无法写入用户设置", exc_info=True)
                watcher.update_settings(
                    pending_settings.inactivity_reminder_minutes,
                    pending_settings.notification_cooldown_minutes,
                    pending_settings.notifications_enabled,
                )
                shared.set_current_settings(pending_settings)

            message = await watcher.check(int(time.time() * 1000))
            if message is not None:
                shared.push_notification(message)
            for achieved in await goals.flush():
                shared.push_notification(achieved)

            await asyncio.sleep(poll_interval)
    finally:
        if adapter is not None:
            adapter.stop()
        engine.stop()


def start_backend_in_thread(shared: SharedState, config: Optional[AppConfig] = None) -> threading.Thread:
    """在独立线程运行 asyncio 后台服务。"""

    loop = asyncio.new_event_loop()

    def _run() -> None:
        asyncio.set_event_loop(loop)
        loop.run_until_complete(run_backend(shared, config))

    thread = threading.Thread(target=_run, name="upmotion-backend", daemon=True)
    thread.start()
    return thread

"""长时间未运动提醒。"""

from __future__ import annotations

import logging
import random
import threading
from typing import Optional

from upmotion.core.hub import ActivityChanged
from upmotion.core.scorer import ActivityLabel
from upmotion.notifiers.base import NotificationMessage, Notifier

logger = logging.getLogger(__name__)

REMINDER_SUGGESTIONS = [
    "已经很久没有活动了，起来走一走吧！",
    "站起来伸展一下，活动活动肩颈。",
    "去倒杯水，顺便走几步。",
    "爬一层楼梯，让心率稍微升高一点。",
]


class InactivityWatcher:
    """跟踪最近一次运动类别，非运动状态持续过久时发出提醒。"""

    def __init__(
        self,
        notifier: Notifier,
        reminder_minutes: float = 120,
        cooldown_minutes: float = 30,
        enabled: bool = True,
    ) -> None:
        self._notifier = notifier
        self._reminder_ms = reminder_minutes * 60_000
        self._cooldown_ms = cooldown_minutes * 60_000
        self._enabled = enabled
        self._label = ActivityLabel.IDLE
        self._inactive_since: Optional[int] = None
        self._last_notified_at: Optional[int] = None
        self._last_suggestion: Optional[str] = None
        self._lock = threading.Lock()

    def __call__(self, event: ActivityChanged) -> None:
        with self._lock:
            self._label = event.label
            if event.label.is_active:
                self._inactive_since = None
                self._last_notified_at = None
            elif self._inactive_since is None:
                self._inactive_since = event.timestamp_ms

    def update_settings(self, reminder_minutes: float, cooldown_minutes: float, enabled: bool = True) -> None:
        with self._lock:
            self._reminder_ms = reminder_minutes * 60_000
            self._cooldown_ms = cooldown_minutes * 60_000
            self._enabled = enabled

    def inactive_minutes(self, now_ms: int) -> float:
        with self._lock:
            if self._inactive_since is None:
                return 0.0
            return max(0.0, (now_ms - self._inactive_since) / 60_000)

    async def check(self, now_ms: int) -> Optional[NotificationMessage]:
        """到达提醒时间且不在冷却期时发送提醒，返回发送的消息。"""

        with self._lock:
            if not self._enabled or self._label.is_active:
                return None
            if self._inactive_since is None:
                self._inactive_since = now_ms
                return None
            elapsed = now_ms - self._inactive_since
            if elapsed < self._reminder_ms:
                return None
            if self._last_notified_at is not None and now_ms - self._last_notified_at < self._cooldown_ms:
                return None
            self._last_notified_at = now_ms
            suggestion = _pick_reminder_suggestion(self._last_suggestion)
            self._last_suggestion = suggestion

        message = NotificationMessage(
            title="该动一动了",
            subtitle=f"已 {int(elapsed // 60_000)} 分钟未运动",
            body=suggestion,
        )
        try:
            await self._notifier.send(message)
        except Exception:
            logger.warning("提醒发送失败", exc_info=True)
        return message


def _pick_reminder_suggestion(last: Optional[str]) -> str:
    """从候选列表中挑选提醒语，尽量避免连续重复。"""

    candidates = [s for s in REMINDER_SUGGESTIONS if s != last] or REMINDER_SUGGESTIONS
    return random.choice(candidates)

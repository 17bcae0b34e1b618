"""每日目标达成通知：步数、活跃时长与热量。"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from dataclasses import dataclass
from typing import Dict, List

from upmotion.core.hub import ActivityChanged
from upmotion.history import ActivityHistory, DailyStats
from upmotion.notifiers.base import NotificationMessage, Notifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyGoal:
    field: str
    target: float
    title: str
    body: str


DEFAULT_GOALS = (
    DailyGoal("steps", 10_000, "步数目标达成", "今天已经走了 {value:,} 步，继续保持！"),
    DailyGoal("active_minutes", 30, "活跃目标达成", "今天已活跃 {value:.0f} 分钟。"),
    DailyGoal("calories", 2_000, "热量目标达成", "今天已消耗 {value:,} 千卡。"),
)


class GoalWatcher:
    """在历史记录之后订阅，比较每段活动结束前后的当日统计。

    某项统计从低于目标变为达到目标时排队一条通知，由 :meth:`flush` 发送；
    统计只增不减，因此每天每个目标只提醒一次。
    """

    def __init__(self, history: ActivityHistory, notifier: Notifier, goals=DEFAULT_GOALS) -> None:
        self._history = history
        self._notifier = notifier
        self._goals = tuple(goals)
        self._seen: Dict[dt.date, DailyStats] = {}
        self._pending: List[NotificationMessage] = []
        self._lock = threading.Lock()

    def __call__(self, event: ActivityChanged) -> None:
        closed = self._history.last_closed()
        if closed is None:
            return
        day = dt.date.fromisoformat(closed.date)
        after = self._history.stats_for(day)
        with self._lock:
            before = self._seen.get(day, DailyStats())
            self._seen[day] = after
            for goal in self._goals:
                previous = getattr(before, goal.field)
                current = getattr(after, goal.field)
                if previous < goal.target <= current:
                    logger.info("%s 达成每日目标 %s (%s)", day, goal.field, current)
                    message = NotificationMessage(
                        title=goal.title,
                        subtitle=day.isoformat(),
                        body=goal.body.format(value=current),
                    )
                    self._pending.append(message)

    async def flush(self) -> List[NotificationMessage]:
        """发送排队的目标通知，返回本次发送的消息。"""

        with self._lock:
            messages, self._pending = self._pending, []
        for message in messages:
            try:
                await self._notifier.send(message)
            except Exception:
                logger.warning("目标通知发送失败", exc_info=True)
        return messages

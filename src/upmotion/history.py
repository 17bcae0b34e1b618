"""活动历史记录与每日统计（步数、热量、活跃时长、睡眠）。"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Tuple

from upmotion.core.hub import ActivityChanged
from upmotion.core.scorer import ActivityLabel

logger = logging.getLogger(__name__)

# 每分钟的估算值
_STEPS_PER_MINUTE = {ActivityLabel.WALKING: 100, ActivityLabel.RUNNING: 180}
_CALORIES_PER_MINUTE = {
    ActivityLabel.WALKING: 4.0,
    ActivityLabel.RUNNING: 12.0,
    ActivityLabel.CYCLING: 8.0,
}
_BASE_CALORIES_PER_MINUTE = 1.2


@dataclass
class DailyStats:
    steps: int = 0
    calories: int = 0
    active_minutes: float = 0.0
    sleep_hours: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ActivityRecord:
    """一段连续的活动。"""

    label: ActivityLabel
    confidence: float
    started_at_ms: int
    duration_minutes: Optional[float] = None

    @property
    def date(self) -> str:
        return _date_of(self.started_at_ms).isoformat()

    def to_dict(self) -> dict:
        return {
            "label": self.label.value,
            "confidence": self.confidence,
            "started_at_ms": self.started_at_ms,
            "duration_minutes": self.duration_minutes,
            "date": self.date,
        }


def estimate_stats(label: ActivityLabel, duration_minutes: float) -> DailyStats:
    """按类别把一段时长换算为统计增量。"""

    stats = DailyStats()
    if label is ActivityLabel.SLEEPING:
        stats.sleep_hours = duration_minutes / 60
        return stats

    stats.steps = round(duration_minutes * _STEPS_PER_MINUTE.get(label, 0))
    stats.calories = round(duration_minutes * _CALORIES_PER_MINUTE.get(label, _BASE_CALORIES_PER_MINUTE))
    if label.is_active:
        stats.active_minutes = duration_minutes
    return stats


class ActivityHistory:
    """订阅活动变化事件，记录每段活动并累计每日统计。"""

    def __init__(self, max_records: int = 1000) -> None:
        self._records: List[ActivityRecord] = []
        self._daily: Dict[str, DailyStats] = {}
        self._max_records = max_records
        self._lock = threading.Lock()

    def __call__(self, event: ActivityChanged) -> None:
        self.record(event)

    def record(self, event: ActivityChanged) -> None:
        with self._lock:
            if self._records:
                self._close(self._records[-1], event.timestamp_ms)
            self._records.append(
                ActivityRecord(label=event.label, confidence=event.confidence, started_at_ms=event.timestamp_ms)
            )
            if len(self._records) > self._max_records:
                del self._records[: len(self._records) - self._max_records]

    def _close(self, record: ActivityRecord, ended_at_ms: int) -> None:
        if record.duration_minutes is not None:
            return
        minutes = max(1.0, (ended_at_ms - record.started_at_ms) / 60000)
        record.duration_minutes = minutes
        delta = estimate_stats(record.label, minutes)
        stats = self._daily.setdefault(record.date, DailyStats())
        stats.steps += delta.steps
        stats.calories += delta.calories
        stats.active_minutes += delta.active_minutes
        stats.sleep_hours += delta.sleep_hours
        logger.debug("记录活动 %s，持续 %.1f 分钟", record.label.value, minutes)

    def records(self, limit: Optional[int] = None) -> List[ActivityRecord]:
        """按开始时间倒序返回记录，``limit`` 限定最多返回的条数。"""

        with self._lock:
            newest_first = list(reversed(self._records))
        if limit is not None:
            return newest_first[: max(0, limit)]
        return newest_first

    def current(self) -> Optional[ActivityRecord]:
        with self._lock:
            return self._records[-1] if self._records else None

    def last_closed(self) -> Optional[ActivityRecord]:
        """最近一段已结束的记录。"""

        with self._lock:
            return self._records[-2] if len(self._records) >= 2 else None

    def stats_for(self, date: dt.date) -> DailyStats:
        with self._lock:
            stats = self._daily.get(date.isoformat())
            return DailyStats(**asdict(stats)) if stats else DailyStats()

    def today_stats(self) -> DailyStats:
        return self.stats_for(dt.date.today())

    def weekly_stats(self, today: Optional[dt.date] = None) -> List[Tuple[dt.date, DailyStats]]:
        """返回截至 ``today`` 的最近 7 天统计，按日期升序，无记录的日期为空统计。"""

        end = today or dt.date.today()
        days = [end - dt.timedelta(days=offset) for offset in range(6, -1, -1)]
        return [(day, self.stats_for(day)) for day in days]

    def clear(self) -> None:
        """清空全部记录与每日统计。"""

        with self._lock:
            self._records.clear()
            self._daily.clear()
        logger.info("活动历史已清空")


def _date_of(timestamp_ms: int) -> dt.date:
    return dt.datetime.fromtimestamp(timestamp_ms / 1000).date()

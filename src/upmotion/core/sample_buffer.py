"""缓存加速度计与陀螺仪合并后的运动样本。"""

from __future__ import annotations

import collections
import math
import threading
from dataclasses import dataclass, replace
from typing import Deque, List, Optional


@dataclass(frozen=True)
class Vec3:
    """三轴读数。"""

    x: float
    y: float
    z: float

    @classmethod
    def zero(cls) -> "Vec3":
        return cls(0.0, 0.0, 0.0)

    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)


@dataclass(frozen=True)
class JoinedSample:
    """一条加速度计读数及与之配对的陀螺仪读数。"""

    accel: Vec3
    timestamp_ms: int
    gyro: Vec3 = Vec3(0.0, 0.0, 0.0)
    step_count_hint: Optional[float] = None


class SampleBuffer:
    """定长 FIFO 缓冲区，满后淘汰最旧样本，支持多线程读写。"""

    def __init__(self, capacity: int = 50) -> None:
        self._samples: Deque[JoinedSample] = collections.deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._samples.maxlen or 0

    def push(self, sample: JoinedSample) -> bool:
        """追加新样本；时间戳早于最新样本的读数被忽略并返回 ``False``。"""

        with self._lock:
            if self._samples and sample.timestamp_ms < self._samples[-1].timestamp_ms:
                return False
            self._samples.append(sample)
            return True

    def merge_gyroscope(self, gyro: Vec3, timestamp_ms: int, join_window_ms: int) -> bool:
        """把陀螺仪读数并入最新样本。

        只有与最新样本的时间差小于 ``join_window_ms`` 时才合并，否则丢弃；
        陀螺仪读数本身从不产生新样本。
        """

        with self._lock:
            if not self._samples:
                return False
            latest = self._samples[-1]
            if abs(latest.timestamp_ms - timestamp_ms) >= join_window_ms:
                return False
            self._samples[-1] = replace(latest, gyro=gyro)
            return True

    def window(self, size: int) -> List[JoinedSample]:
        """按时间顺序返回最近 ``min(size, len)`` 条样本的拷贝。"""

        if size <= 0:
            return []
        with self._lock:
            if size >= len(self._samples):
                return list(self._samples)
            return list(self._samples)[-size:]

    def latest(self) -> Optional[JoinedSample]:
        with self._lock:
            return self._samples[-1] if self._samples else None

    def snapshot(self) -> List[JoinedSample]:
        """返回当前样本的浅拷贝。"""

        with self._lock:
            return list(self._samples)

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()

    def is_empty(self) -> bool:
        with self._lock:
            return not self._samples

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

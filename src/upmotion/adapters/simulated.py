"""模拟运动传感器，用于开发阶段与演示。"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Dict, Optional, Sequence, Tuple

from upmotion.adapters.base import SensorAdapter
from upmotion.core.activity_engine import ActivityEngine
from upmotion.core.sample_buffer import Vec3
from upmotion.core.scorer import ActivityLabel

logger = logging.getLogger(__name__)

GRAVITY = 9.8

# 每个类别的噪声幅度：(加速度 x, y, z), (陀螺仪 x, y, z)
_NOISE: Dict[ActivityLabel, Tuple[Tuple[float, float, float], Tuple[float, float, float]]] = {
    ActivityLabel.WALKING: ((2.0, 2.0, 4.0), (0.5, 0.5, 0.3)),
    ActivityLabel.RUNNING: ((6.0, 6.0, 8.0), (1.0, 1.0, 0.8)),
    ActivityLabel.CYCLING: ((3.0, 2.0, 2.0), (1.5, 0.8, 1.2)),
    ActivityLabel.SLEEPING: ((0.2, 0.2, 0.3), (0.1, 0.1, 0.1)),
    ActivityLabel.IDLE: ((0.5, 0.5, 0.8), (0.2, 0.2, 0.2)),
}

DEFAULT_SCHEDULE: Tuple[ActivityLabel, ...] = (
    ActivityLabel.WALKING,
    ActivityLabel.RUNNING,
    ActivityLabel.IDLE,
    ActivityLabel.CYCLING,
    ActivityLabel.SLEEPING,
)


class SimulatedMotionAdapter(SensorAdapter):
    """按固定节奏轮换活动类别，生成对应幅度的随机读数。

    读数围绕重力加速度抖动，只用于驱动整条链路，不保证各阶段被分类为
    同名类别：竖直方向的随机抖动会被当作步伐峰值，睡眠阶段的合加速度
    约为 9.8，达不到睡眠规则要求的近零值；骑行阶段的陀螺仪方差也低于骑行
    规则的阈值。需要稳定复现某个类别时，直接通过 :meth:`publish` 或
    HTTP 接口推送构造好的读数。
    """

    def __init__(
        self,
        engine: ActivityEngine,
        sample_interval: float = 0.1,
        phase_seconds: float = 30.0,
        schedule: Sequence[ActivityLabel] = DEFAULT_SCHEDULE,
        seed: Optional[int] = None,
    ) -> None:
        super().__init__(engine)
        self._sample_interval = max(sample_interval, 0.01)
        self._phase_seconds = phase_seconds
        self._schedule = tuple(schedule) or DEFAULT_SCHEDULE
        self._rng = random.Random(seed)
        self._task: Optional[asyncio.Task[None]] = None

    async def start(self) -> None:
        if self._task is not None:
            return

        async def _loop() -> None:
            started = time.monotonic()
            current: Optional[ActivityLabel] = None
            while True:
                activity = self.activity_at(time.monotonic() - started)
                if activity is not current:
                    logger.info("模拟传感器切换为 %s", activity.value)
                    current = activity
                accel, gyro = self.generate(activity)
                self.publish(accel, gyro)
                await asyncio.sleep(self._sample_interval)

        self._task = asyncio.create_task(_loop())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def activity_at(self, elapsed_seconds: float) -> ActivityLabel:
        index = int(max(elapsed_seconds, 0.0) // self._phase_seconds) % len(self._schedule)
        return self._schedule[index]

    def generate(self, activity: ActivityLabel) -> Tuple[Vec3, Vec3]:
        """生成一组加速度计与陀螺仪读数，z 轴包含重力。"""

        accel_noise, gyro_noise = _NOISE.get(activity, _NOISE[ActivityLabel.IDLE])
        accel = Vec3(
            self._jitter(accel_noise[0]),
            self._jitter(accel_noise[1]),
            GRAVITY + self._jitter(accel_noise[2]),
        )
        gyro = Vec3(
            self._jitter(gyro_noise[0]),
            self._jitter(gyro_noise[1]),
            self._jitter(gyro_noise[2]),
        )
        return accel, gyro

    def _jitter(self, amplitude: float) -> float:
        return (self._rng.random() - 0.5) * amplitude

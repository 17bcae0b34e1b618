"""传感器采集适配器基类。"""

from __future__ import annotations

import abc
import time

from upmotion.core.activity_engine import ActivityEngine
from upmotion.core.sample_buffer import Vec3


class SensorAdapter(abc.ABC):
    """所有运动传感器来源的抽象基类，把读数写入分类引擎。"""

    def __init__(self, engine: ActivityEngine) -> None:
        self._engine = engine

    @abc.abstractmethod
    async def start(self) -> None:
        """启动采集循环。"""

    @abc.abstractmethod
    def stop(self) -> None:
        """停止采集。"""

    def publish(self, accel: Vec3, gyro: Vec3, timestamp_ms: int | None = None) -> None:
        """先写加速度计、再写同一时刻的陀螺仪读数。"""

        ts = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
        self._engine.push_accelerometer_sample(accel.x, accel.y, accel.z, ts)
        self._engine.push_gyroscope_sample(gyro.x, gyro.y, gyro.z, ts)

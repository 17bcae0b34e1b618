"""活动分类引擎：采样缓冲、周期分类与状态变化通知。"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Callable, List, Optional, Sequence

from upmotion.config import AppConfig
from upmotion.core.features import FeatureVector, extract_features
from upmotion.core.hub import ActivityChanged, ActivitySubscriptionHub
from upmotion.core.sample_buffer import JoinedSample, SampleBuffer, Vec3
from upmotion.core.scorer import ActivityLabel, ClassificationResult, classify

logger = logging.getLogger(__name__)

WindowClassifier = Callable[[Sequence[JoinedSample]], ClassificationResult]


class ActivityEngine:
    """持有样本缓冲与当前类别，按固定周期分类，仅在类别变化时发出事件。

    推送与分类共用一把锁，推送可以来自任意线程；周期任务运行在调用
    :meth:`start` 的事件循环上。
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        hub: Optional[ActivitySubscriptionHub] = None,
        classifier: Optional[WindowClassifier] = None,
    ) -> None:
        self._config = config or AppConfig.load_default()
        self._hub = hub or ActivitySubscriptionHub()
        self._classify_window = classifier or self._classify_with_rules
        self._buffer = SampleBuffer(capacity=self._config.buffer_capacity)
        self._lock = threading.RLock()
        self._running = False
        self._task: Optional[asyncio.Task[None]] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._current_label = ActivityLabel.IDLE
        self._last_result: Optional[ClassificationResult] = None
        self._last_emitted_timestamp_ms: Optional[int] = None
        self._pending_step_count: Optional[float] = None

    @property
    def hub(self) -> ActivitySubscriptionHub:
        return self._hub

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def current_label(self) -> ActivityLabel:
        with self._lock:
            return self._current_label

    @property
    def last_result(self) -> Optional[ClassificationResult]:
        with self._lock:
            return self._last_result

    @property
    def last_emitted_timestamp_ms(self) -> Optional[int]:
        with self._lock:
            return self._last_emitted_timestamp_ms

    @property
    def buffered_samples(self) -> int:
        return len(self._buffer)

    def window(self) -> List[JoinedSample]:
        """返回当前分类窗口内的样本。"""

        return self._buffer.window(self._config.window_size)

    def current_features(self) -> FeatureVector:
        return extract_features(self.window())

    async def start(self) -> None:
        """清空缓冲并从静止状态开始周期分类。"""

        with self._lock:
            if self._running:
                return
            self._buffer.clear()
            self._current_label = ActivityLabel.IDLE
            self._last_result = None
            self._last_emitted_timestamp_ms = None
            self._pending_step_count = None
            self._running = True
            self._loop = asyncio.get_running_loop()
            self._task = self._loop.create_task(self._tick_loop())

        logger.info("活动分类已启动，周期 %d ms", self._config.tick_interval_ms)

    def stop(self) -> None:
        """停止周期分类；返回后不会再有分类执行。缓冲区保留到下次启动。"""

        with self._lock:
            if not self._running:
                return
            self._running = False
            task, loop = self._task, self._loop
            self._task = None
            self._loop = None

        if task is not None and not task.done():
            if _running_loop() is loop:
                task.cancel()
            elif loop is not None and not loop.is_closed():
                loop.call_soon_threadsafe(task.cancel)
        logger.info("活动分类已停止")

    async def _tick_loop(self) -> None:
        interval = self._config.tick_interval_ms / 1000
        loop = asyncio.get_running_loop()
        deadline = loop.time() + interval
        while True:
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            self.tick()
            deadline += interval
            # 落后时跳过错过的周期，不补跑
            now = loop.time()
            while deadline <= now:
                deadline += interval

    def tick(self) -> Optional[ClassificationResult]:
        """执行一次分类；类别变化时通过订阅中心发出事件。"""

        with self._lock:
            if not self._running:
                return None

            samples = self._buffer.window(self._config.window_size)
            result = self._classify_window(samples)
            self._last_result = result
            if result.label is self._current_label:
                return result

            previous = self._current_label
            timestamp_ms = self._now_ms()
            self._current_label = result.label
            self._last_emitted_timestamp_ms = timestamp_ms
            logger.info(
                "活动变化: %s -> %s (置信度 %.2f, 样本 %d)",
                previous.value,
                result.label.value,
                result.confidence,
                len(samples),
            )
            self._hub.notify(
                ActivityChanged(label=result.label, confidence=result.confidence, timestamp_ms=timestamp_ms)
            )
            return result

    def push_accelerometer_sample(self, x: float, y: float, z: float, timestamp_ms: int) -> bool:
        """写入一条加速度计读数，生成新的合并样本。"""

        with self._lock:
            if not self._running:
                logger.debug("引擎未运行，忽略加速度计读数 @%s", timestamp_ms)
                return False
            sample = JoinedSample(
                accel=Vec3(float(x), float(y), float(z)),
                timestamp_ms=int(timestamp_ms),
                step_count_hint=self._pending_step_count,
            )
            if not self._buffer.push(sample):
                logger.debug("加速度计读数乱序 @%s，已丢弃", timestamp_ms)
                return False
            self._pending_step_count = None
            return True

    def push_gyroscope_sample(self, x: float, y: float, z: float, timestamp_ms: int) -> bool:
        """把陀螺仪读数并入最近的加速度计样本，超出合并窗口则丢弃。"""

        with self._lock:
            if not self._running:
                logger.debug("引擎未运行，忽略陀螺仪读数 @%s", timestamp_ms)
                return False
            merged = self._buffer.merge_gyroscope(
                Vec3(float(x), float(y), float(z)),
                int(timestamp_ms),
                self._config.join_window_ms,
            )
            if not merged:
                logger.debug("陀螺仪读数 @%s 超出合并窗口，已丢弃", timestamp_ms)
            return merged

    def push_step_count(self, steps: float, timestamp_ms: int) -> bool:
        """记录计步器读数，附加到下一条加速度计样本。"""

        with self._lock:
            if not self._running:
                logger.debug("引擎未运行，忽略计步读数 @%s", timestamp_ms)
                return False
            self._pending_step_count = float(steps)
            return True

    def _classify_with_rules(self, samples: Sequence[JoinedSample]) -> ClassificationResult:
        return classify(
            extract_features(samples),
            len(samples),
            min_samples=self._config.min_samples_for_classification,
            confidence_floor=self._config.confidence_floor,
        )

    def _now_ms(self) -> int:
        return int(time.time() * 1000)


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None

import asyncio
import time
from typing import Iterable, List

import pytest

from upmotion.config import AppConfig
from upmotion.core.activity_engine import ActivityEngine
from upmotion.core.hub import ActivityChanged, ActivitySubscriptionHub
from upmotion.core.sample_buffer import Vec3
from upmotion.core.scorer import ActivityLabel, ClassificationResult


def _config(**overrides) -> AppConfig:
    values = {"tick_interval_ms": 60_000}
    values.update(overrides)
    return AppConfig(**values)


def _scripted(labels: Iterable[ActivityLabel]):
    remaining = list(labels)
    calls: List[int] = []

    def _classify(samples) -> ClassificationResult:
        calls.append(len(samples))
        label = remaining.pop(0) if remaining else ActivityLabel.IDLE
        return ClassificationResult(label, 0.9)

    return _classify, calls


def test_edge_triggered_emission() -> None:
    labels = [
        ActivityLabel.WALKING,
        ActivityLabel.WALKING,
        ActivityLabel.RUNNING,
        ActivityLabel.RUNNING,
        ActivityLabel.RUNNING,
        ActivityLabel.IDLE,
    ]
    classifier, _ = _scripted(labels)
    engine = ActivityEngine(_config(), classifier=classifier)
    engine._now_ms = lambda: 5000  # type: ignore[method-assign]
    events: List[ActivityChanged] = []
    engine.hub.subscribe(events.append)

    async def scenario() -> None:
        await engine.start()
        for _ in labels:
            engine.tick()
        engine.stop()

    asyncio.run(scenario())

    assert [e.label for e in events] == [ActivityLabel.WALKING, ActivityLabel.RUNNING, ActivityLabel.IDLE]
    assert all(e.timestamp_ms == 5000 for e in events)
    assert engine.last_emitted_timestamp_ms == 5000


def test_sparse_buffer_stays_idle_without_event() -> None:
    engine = ActivityEngine(_config())
    events: List[ActivityChanged] = []
    engine.hub.subscribe(events.append)

    async def scenario() -> ClassificationResult:
        await engine.start()
        for i in range(5):
            engine.push_accelerometer_sample(1.0, 1.0, 12.0, 1000 + i * 100)
        result = engine.tick()
        engine.stop()
        return result

    result = asyncio.run(scenario())

    assert result == ClassificationResult(ActivityLabel.IDLE, 0.5)
    assert events == []


def test_walking_samples_emit_walking_event(walking_samples) -> None:
    engine = ActivityEngine(_config())
    events: List[ActivityChanged] = []
    engine.hub.subscribe(events.append)

    async def scenario() -> None:
        await engine.start()
        for sample in walking_samples:
            engine.push_accelerometer_sample(sample.accel.x, sample.accel.y, sample.accel.z, sample.timestamp_ms)
            engine.push_gyroscope_sample(sample.gyro.x, sample.gyro.y, sample.gyro.z, sample.timestamp_ms + 10)
        engine.tick()
        engine.stop()

    asyncio.run(scenario())

    assert len(events) == 1
    assert events[0].label is ActivityLabel.WALKING
    assert events[0].confidence == pytest.approx(1.0)
    assert engine.current_label is ActivityLabel.WALKING


def test_tick_uses_most_recent_window() -> None:
    classifier, calls = _scripted([])
    engine = ActivityEngine(_config(window_size=20), classifier=classifier)

    async def scenario() -> None:
        await engine.start()
        for i in range(35):
            engine.push_accelerometer_sample(0.0, 0.0, 9.8, i * 100)
        engine.tick()
        engine.stop()

    asyncio.run(scenario())

    assert calls == [20]
    assert engine.buffered_samples == 35
    assert engine.window()[0].timestamp_ms == 1500


def test_join_window_scenario() -> None:
    engine = ActivityEngine(_config())

    async def scenario() -> None:
        await engine.start()
        assert engine.push_accelerometer_sample(0.0, 0.0, 9.8, 1000)
        assert engine.push_gyroscope_sample(0.1, 0.2, 0.3, 1030)
        assert not engine.push_gyroscope_sample(5.0, 5.0, 5.0, 1100)
        engine.stop()

    asyncio.run(scenario())

    window = engine.window()
    assert len(window) == 1
    assert window[0].gyro == Vec3(0.1, 0.2, 0.3)


def test_out_of_order_accelerometer_sample_is_dropped() -> None:
    engine = ActivityEngine(_config())

    async def scenario() -> None:
        await engine.start()
        engine.push_accelerometer_sample(0.0, 0.0, 9.8, 2000)
        assert not engine.push_accelerometer_sample(0.0, 0.0, 9.8, 1500)
        engine.stop()

    asyncio.run(scenario())

    assert engine.buffered_samples == 1


def test_step_count_attached_to_next_sample() -> None:
    engine = ActivityEngine(_config())

    async def scenario() -> None:
        await engine.start()
        engine.push_step_count(42, 900)
        engine.push_accelerometer_sample(0.0, 0.0, 9.8, 1000)
        engine.push_accelerometer_sample(0.0, 0.0, 9.8, 1100)
        engine.stop()

    asyncio.run(scenario())

    first, second = engine.window()
    assert first.step_count_hint == 42.0
    assert second.step_count_hint is None


def test_pushes_ignored_while_stopped() -> None:
    engine = ActivityEngine(_config())

    assert not engine.push_accelerometer_sample(0.0, 0.0, 9.8, 1000)
    assert not engine.push_gyroscope_sample(0.0, 0.0, 0.0, 1000)
    assert not engine.push_step_count(10, 1000)
    assert engine.tick() is None
    assert engine.buffered_samples == 0


def test_stop_is_idempotent_and_keeps_buffer() -> None:
    engine = ActivityEngine(_config())

    async def scenario() -> None:
        await engine.start()
        engine.push_accelerometer_sample(0.0, 0.0, 9.8, 1000)
        engine.stop()
        engine.stop()

    asyncio.run(scenario())

    assert not engine.is_running
    assert engine.tick() is None
    assert engine.buffered_samples == 1


def test_start_resets_state() -> None:
    classifier, _ = _scripted([ActivityLabel.RUNNING])
    engine = ActivityEngine(_config(), classifier=classifier)

    async def scenario() -> None:
        await engine.start()
        engine.push_accelerometer_sample(0.0, 0.0, 9.8, 1000)
        engine.tick()
        assert engine.current_label is ActivityLabel.RUNNING
        engine.stop()
        await engine.start()
        engine.stop()

    asyncio.run(scenario())

    assert engine.current_label is ActivityLabel.IDLE
    assert engine.buffered_samples == 0
    assert engine.last_result is None


def test_periodic_tick_runs_and_halts_after_stop() -> None:
    classifier, calls = _scripted([ActivityLabel.WALKING] * 100)
    engine = ActivityEngine(_config(tick_interval_ms=10), classifier=classifier)
    events: List[ActivityChanged] = []
    engine.hub.subscribe(events.append)

    async def scenario() -> int:
        await engine.start()
        await asyncio.sleep(0.1)
        engine.stop()
        ticks_at_stop = len(calls)
        await asyncio.sleep(0.05)
        return ticks_at_stop

    ticks_at_stop = asyncio.run(scenario())

    assert ticks_at_stop >= 1
    assert len(calls) == ticks_at_stop
    assert [e.label for e in events] == [ActivityLabel.WALKING]


def test_failing_listener_does_not_break_tick() -> None:
    classifier, _ = _scripted([ActivityLabel.CYCLING])
    hub = ActivitySubscriptionHub()
    engine = ActivityEngine(_config(), hub=hub, classifier=classifier)
    received: List[ActivityChanged] = []

    def _broken(event: ActivityChanged) -> None:
        raise RuntimeError("storage offline")

    hub.subscribe(_broken)
    hub.subscribe(received.append)

    async def scenario() -> ClassificationResult:
        await engine.start()
        result = engine.tick()
        engine.stop()
        return result

    result = asyncio.run(scenario())

    assert result.label is ActivityLabel.CYCLING
    assert [e.label for e in received] == [ActivityLabel.CYCLING]
    assert engine.current_label is ActivityLabel.CYCLING


def test_independent_engines_do_not_share_state() -> None:
    first = ActivityEngine(_config())
    second = ActivityEngine(_config())

    async def scenario() -> None:
        await first.start()
        await second.start()
        first.push_accelerometer_sample(0.0, 0.0, 9.8, 1000)
        first.stop()
        second.stop()

    asyncio.run(scenario())

    assert first.buffered_samples == 1
    assert second.buffered_samples == 0
    assert first.hub is not second.hub


def test_step_count_survives_dropped_out_of_order_sample() -> None:
    engine = ActivityEngine(_config())

    async def scenario() -> None:
        await engine.start()
        engine.push_accelerometer_sample(0.0, 0.0, 9.8, 2000)
        engine.push_step_count(7, 2050)
        assert not engine.push_accelerometer_sample(0.0, 0.0, 9.8, 1500)
        engine.push_accelerometer_sample(0.0, 0.0, 9.8, 2100)
        engine.stop()

    asyncio.run(scenario())

    assert [s.step_count_hint for s in engine.window()] == [None, 7.0]


def test_periodic_tick_keeps_schedule_despite_slow_classification() -> None:
    calls: List[int] = []

    def _slow_classify(samples) -> ClassificationResult:
        calls.append(len(samples))
        time.sleep(0.025)
        return ClassificationResult(ActivityLabel.IDLE, 0.5)

    engine = ActivityEngine(_config(tick_interval_ms=50), classifier=_slow_classify)

    async def scenario() -> None:
        await engine.start()
        await asyncio.sleep(0.53)
        engine.stop()

    asyncio.run(scenario())

    # 按截止时间调度约 10 次；每次在分类耗时后再等满周期只能约 7 次
    assert len(calls) >= 8

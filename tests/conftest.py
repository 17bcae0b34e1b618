from typing import List

import pytest

from upmotion.core.sample_buffer import JoinedSample, Vec3

# 竖直加速度周期为 6 个样本，每周期一个峰值（10 Hz 采样）
_WALKING_Z = [9.0, 10.0, 11.0, 10.0, 9.0, 8.6]


def make_walking_samples(start_ms: int = 1000) -> List[JoinedSample]:
    samples = []
    for i in range(20):
        sign = 1.0 if i % 2 == 0 else -1.0
        samples.append(
            JoinedSample(
                accel=Vec3(0.6 * sign, -0.6 * sign, _WALKING_Z[i % 6]),
                gyro=Vec3(0.2 * sign, -0.2 * sign, 0.1 * sign),
                timestamp_ms=start_ms + i * 100,
            )
        )
    return samples


def make_sleeping_samples(start_ms: int = 1000) -> List[JoinedSample]:
    """去除重力后的静止窗口，中间有一次轻微抽动。"""

    samples = []
    for i in range(20):
        z = 0.6 if i == 10 else 0.0
        samples.append(JoinedSample(accel=Vec3(0.0, 0.0, z), timestamp_ms=start_ms + i * 100))
    return samples


def make_still_samples(start_ms: int = 1000) -> List[JoinedSample]:
    return [JoinedSample(accel=Vec3(0.0, 0.0, 9.8), timestamp_ms=start_ms + i * 100) for i in range(20)]


@pytest.fixture
def walking_samples() -> List[JoinedSample]:
    return make_walking_samples()


@pytest.fixture
def sleeping_samples() -> List[JoinedSample]:
    return make_sleeping_samples()


@pytest.fixture
def still_samples() -> List[JoinedSample]:
    return make_still_samples()

"""滑动窗口特征提取。"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Sequence

import numpy as np

from upmotion.core.sample_buffer import JoinedSample

STEP_PEAK_THRESHOLD = 0.5
MIN_SAMPLES_FOR_PEAKS = 3


@dataclass(frozen=True)
class FeatureVector:
    """一个窗口的统计特征，每次分类时重新计算。"""

    mean_accel_mag: float = 0.0
    accel_variance: float = 0.0
    mean_gyro_mag: float = 0.0
    gyro_variance: float = 0.0
    step_frequency_hz: float = 0.0
    movement_intensity: float = 0.0
    vertical_movement: float = 0.0
    horizontal_movement: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def extract_features(samples: Sequence[JoinedSample]) -> FeatureVector:
    """把一组样本归约为特征向量；纯函数，相同输入得到相同输出。"""

    if not samples:
        return FeatureVector()

    accel = np.array([(s.accel.x, s.accel.y, s.accel.z) for s in samples], dtype=np.float64)
    gyro = np.array([(s.gyro.x, s.gyro.y, s.gyro.z) for s in samples], dtype=np.float64)

    accel_mag = np.sqrt(np.sum(accel * accel, axis=1))
    gyro_mag = np.sqrt(np.sum(gyro * gyro, axis=1))

    accel_variance = float(np.var(accel_mag))
    gyro_variance = float(np.var(gyro_mag))

    return FeatureVector(
        mean_accel_mag=float(np.mean(accel_mag)),
        accel_variance=accel_variance,
        mean_gyro_mag=float(np.mean(gyro_mag)),
        gyro_variance=gyro_variance,
        step_frequency_hz=estimate_step_frequency(samples),
        movement_intensity=(accel_variance + gyro_variance) / 2,
        vertical_movement=float(np.mean(np.abs(accel[:, 2]))),
        horizontal_movement=float(np.mean(np.hypot(accel[:, 0], accel[:, 1]))),
    )


def estimate_step_frequency(samples: Sequence[JoinedSample]) -> float:
    """按竖直加速度的局部峰值数估算步频（Hz）。

    首尾样本不参与峰值判断；少于 3 个样本或时间跨度为 0 时返回 0。
    """

    if len(samples) < MIN_SAMPLES_FOR_PEAKS:
        return 0.0

    span_seconds = (samples[-1].timestamp_ms - samples[0].timestamp_ms) / 1000
    if span_seconds <= 0:
        return 0.0

    vertical = np.array([s.accel.z for s in samples], dtype=np.float64)
    peaks = count_peaks(vertical, STEP_PEAK_THRESHOLD)
    return peaks / span_seconds


def count_peaks(series: np.ndarray, threshold: float) -> int:
    """统计严格高于左右邻点且超过阈值的内部点个数。"""

    if series.size < MIN_SAMPLES_FOR_PEAKS:
        return 0
    middle = series[1:-1]
    mask = (middle > series[:-2]) & (middle > series[2:]) & (middle > threshold)
    return int(np.count_nonzero(mask))

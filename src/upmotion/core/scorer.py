"""基于规则的多类别活动评分。"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Tuple

from upmotion.core.features import FeatureVector

DEFAULT_MIN_SAMPLES = 10
DEFAULT_CONFIDENCE_FLOOR = 0.3
SPARSE_DATA_CONFIDENCE = 0.5
LOW_CONFIDENCE_FALLBACK = 0.6


class ActivityLabel(str, Enum):
    """活动类别，集合固定。"""

    IDLE = "idle"
    WALKING = "walking"
    RUNNING = "running"
    CYCLING = "cycling"
    SLEEPING = "sleeping"
    DRIVING = "driving"

    @property
    def is_active(self) -> bool:
        return self in _ACTIVE_LABELS


_ACTIVE_LABELS = frozenset({ActivityLabel.WALKING, ActivityLabel.RUNNING, ActivityLabel.CYCLING})


@dataclass(frozen=True)
class ClassificationResult:
    """单次分类结果。"""

    label: ActivityLabel
    confidence: float


Rule = Tuple[Callable[[FeatureVector], bool], float]


# 阈值与权重均为固定常量，保证分类结果可复现
RULES: Dict[ActivityLabel, List[Rule]] = {
    ActivityLabel.WALKING: [
        (lambda f: 0.5 < f.step_frequency_hz < 3.0, 0.4),
        (lambda f: 0.3 < f.accel_variance < 2.0, 0.3),
        (lambda f: f.vertical_movement > 0.2, 0.3),
    ],
    ActivityLabel.RUNNING: [
        (lambda f: f.step_frequency_hz > 2.5, 0.5),
        (lambda f: f.accel_variance > 1.5, 0.3),
        (lambda f: f.movement_intensity > 1.0, 0.2),
    ],
    ActivityLabel.CYCLING: [
        (lambda f: f.gyro_variance > 0.5 and f.accel_variance < 1.5, 0.4),
        (lambda f: f.horizontal_movement > 0.3, 0.3),
        (lambda f: f.step_frequency_hz < 0.5, 0.3),
    ],
    ActivityLabel.DRIVING: [
        (lambda f: f.accel_variance > 0.8 and f.gyro_variance < 0.5, 0.4),
        (lambda f: f.step_frequency_hz < 0.2, 0.3),
        (lambda f: 0.5 < f.movement_intensity < 1.5, 0.3),
    ],
    ActivityLabel.SLEEPING: [
        (lambda f: f.movement_intensity < 0.2, 0.5),
        (lambda f: f.mean_accel_mag < 0.1, 0.3),
        (lambda f: f.step_frequency_hz < 0.1, 0.2),
    ],
    ActivityLabel.IDLE: [
        (lambda f: f.movement_intensity < 0.5 and f.step_frequency_hz < 0.3, 0.4),
        (lambda f: f.accel_variance < 0.5, 0.3),
        (lambda f: f.gyro_variance < 0.3, 0.3),
    ],
}

# 同分时按此顺序取第一个
TIE_BREAK_ORDER: Tuple[ActivityLabel, ...] = (
    ActivityLabel.IDLE,
    ActivityLabel.WALKING,
    ActivityLabel.RUNNING,
    ActivityLabel.CYCLING,
    ActivityLabel.DRIVING,
    ActivityLabel.SLEEPING,
)


def score_labels(features: FeatureVector) -> Dict[ActivityLabel, float]:
    """计算每个类别的规则得分，结果截断到 [0, 1]。"""

    scores: Dict[ActivityLabel, float] = {}
    for label in TIE_BREAK_ORDER:
        score = 0.0
        for predicate, weight in RULES[label]:
            if predicate(features):
                score += weight
        # 取整后相同权重之和才能严格相等，同分判定依赖于此
        scores[label] = max(0.0, min(1.0, round(score, 4)))
    return scores


def classify(
    features: FeatureVector,
    sample_count: int,
    *,
    min_samples: int = DEFAULT_MIN_SAMPLES,
    confidence_floor: float = DEFAULT_CONFIDENCE_FLOOR,
) -> ClassificationResult:
    """根据特征向量给出活动类别与置信度。

    样本不足时直接返回静止（置信度 0.5）；最高分低于 ``confidence_floor`` 时
    同样回退为静止（置信度 0.6）。
    """

    if sample_count < min_samples:
        return ClassificationResult(ActivityLabel.IDLE, SPARSE_DATA_CONFIDENCE)

    scores = score_labels(features)
    best_label = TIE_BREAK_ORDER[0]
    best_score = scores[best_label]
    for label in TIE_BREAK_ORDER[1:]:
        if scores[label] > best_score:
            best_label = label
            best_score = scores[label]

    if best_score < confidence_floor:
        return ClassificationResult(ActivityLabel.IDLE, LOW_CONFIDENCE_FALLBACK)
    return ClassificationResult(best_label, best_score)

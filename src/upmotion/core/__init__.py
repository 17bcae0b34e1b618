"""核心业务逻辑：样本缓冲、特征提取、规则评分与周期分类。"""

from .activity_engine import ActivityEngine
from .features import FeatureVector, extract_features
from .hub import ActivityChanged, ActivitySubscriptionHub
from .sample_buffer import JoinedSample, SampleBuffer, Vec3
from .scorer import ActivityLabel, ClassificationResult, classify

__all__ = [
    "ActivityChanged",
    "ActivityEngine",
    "ActivityLabel",
    "ActivitySubscriptionHub",
    "ClassificationResult",
    "FeatureVector",
    "JoinedSample",
    "SampleBuffer",
    "Vec3",
    "classify",
    "extract_features",
]

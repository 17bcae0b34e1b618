"""运动传感器适配器。"""

from .base import SensorAdapter
from .simulated import SimulatedMotionAdapter

__all__ = ["SensorAdapter", "SimulatedMotionAdapter"]

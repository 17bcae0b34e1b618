"""upMotion：基于运动传感器的活动识别。"""

__version__ = "0.1.0"

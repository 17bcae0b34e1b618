"""活动提醒通知。"""

from .base import LoggingNotifier, NotificationMessage, Notifier
from .goals import DEFAULT_GOALS, DailyGoal, GoalWatcher
from .inactivity import InactivityWatcher

__all__ = [
    "DEFAULT_GOALS",
    "DailyGoal",
    "GoalWatcher",
    "InactivityWatcher",
    "LoggingNotifier",
    "NotificationMessage",
    "Notifier",
]

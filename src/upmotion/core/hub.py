"""活动变化事件的订阅与分发。"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from upmotion.core.scorer import ActivityLabel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityChanged:
    """活动类别发生变化时发出的事件。"""

    label: ActivityLabel
    confidence: float
    timestamp_ms: int


ActivityListener = Callable[[ActivityChanged], None]


class ActivitySubscriptionHub:
    """按订阅顺序同步通知监听者，单个监听者异常不影响其余监听者。"""

    def __init__(self) -> None:
        self._listeners: Dict[int, ActivityListener] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, listener: ActivityListener) -> int:
        """注册监听者，返回用于退订的令牌。"""

        with self._lock:
            token = next(self._tokens)
            self._listeners[token] = listener
            return token

    def unsubscribe(self, token: int) -> bool:
        with self._lock:
            return self._listeners.pop(token, None) is not None

    def notify(self, event: ActivityChanged) -> int:
        """分发事件，返回成功处理的监听者数量。"""

        with self._lock:
            listeners: List[Tuple[int, ActivityListener]] = list(self._listeners.items())

        delivered = 0
        for token, listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.warning("活动监听者 #%s 处理 %s 失败", token, event.label.value, exc_info=True)
                continue
            delivered += 1
        return delivered

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

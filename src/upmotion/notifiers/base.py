"""通知服务抽象基类。"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class NotificationMessage:
    title: str
    subtitle: str
    body: str


class Notifier(abc.ABC):
    """通知接口，不同平台各自实现。"""

    @abc.abstractmethod
    async def send(self, message: NotificationMessage) -> None:
        """发送通知。"""

        raise NotImplementedError


class LoggingNotifier(Notifier):
    """把通知写入日志，供无桌面环境或开发阶段使用。"""

    async def send(self, message: NotificationMessage) -> None:
        logger.info("[通知] %s - %s: %s", message.title, message.subtitle, message.body)

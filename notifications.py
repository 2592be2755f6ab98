"""User notice delivery."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

logger = logging.getLogger(__name__)


class NoticeLevel(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    title: str
    message: str
    level: NoticeLevel = NoticeLevel.INFO


class Notifier(Protocol):
    def notify(self, notice: Notice) -> None: ...


_LOG_LEVELS = {
    NoticeLevel.INFO: logging.INFO,
    NoticeLevel.WARNING: logging.WARNING,
    NoticeLevel.ERROR: logging.ERROR,
}


class LoggingNotifier:
    """Forward notices to the ``logging`` module."""

    def notify(self, notice: Notice) -> None:
        logger.log(_LOG_LEVELS[notice.level], "%s: %s", notice.title, notice.message)


class CollectingNotifier:
    """Keep notices in memory so a caller can hand them back to the user."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)

    def drain(self) -> list[Notice]:
        notices, self.notices = self.notices, []
        return notices

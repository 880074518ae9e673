import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Literal

from config.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    level: Literal["success", "error"]
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self) -> dict:
        return {"level": self.level, "message": self.message, "createdAt": self.created_at.isoformat()}


class NotificationCenter:
    """작업 결과 알림(토스트) 보관소. 최근 N건만 유지"""

    def __init__(self, limit: int = settings.NOTIFICATION_HISTORY):
        self._notices = deque(maxlen=limit)

    def success(self, message: str) -> None:
        logger.info(f"[알림] {message}")
        self._notices.append(Notice("success", message))

    def error(self, message: str) -> None:
        logger.warning(f"[알림] {message}")
        self._notices.append(Notice("error", message))

    @property
    def last(self):
        return self._notices[-1] if self._notices else None

    def recent(self) -> List[Notice]:
        return list(self._notices)

    def drain(self) -> List[Notice]:
        """보관 중인 알림을 모두 꺼내고 비움"""
        notices = list(self._notices)
        self._notices.clear()
        return notices

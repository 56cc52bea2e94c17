"""User-facing notifications.

The console surfaces outcomes as short notices. The notifier keeps a bounded history
that a front end can render, and logs every notice.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal

logger = logging.getLogger(__name__)

Level = Literal["success", "info", "error"]


@dataclass(frozen=True)
class Notice:
    level: Level
    text: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class Notifier:
    """Collects notices for display."""

    def __init__(self, max_notices: int = 100):
        self._notices: deque[Notice] = deque(maxlen=max_notices)

    def success(self, text: str) -> None:
        self._push("success", text)

    def info(self, text: str) -> None:
        self._push("info", text)

    def error(self, text: str) -> None:
        self._push("error", text)

    @property
    def notices(self) -> list[Notice]:
        return list(self._notices)

    def last(self) -> Notice | None:
        return self._notices[-1] if self._notices else None

    def clear(self) -> None:
        self._notices.clear()

    def _push(self, level: Level, text: str) -> None:
        self._notices.append(Notice(level=level, text=text))
        if level == "error":
            logger.warning(f"[notice] {text}")
        else:
            logger.info(f"[notice] {text}")

"""User-visible notices.

The host UI shows short notices when something goes wrong (an embedding call
failed, indexing stopped). Components receive a ``Notifier`` callable; the
default ``NoticeBoard`` logs each notice and keeps the latest ones so the
status endpoint can return them.
"""

import logging
from collections import deque
from datetime import datetime, UTC
from typing import Callable

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]

MAX_RECENT_NOTICES = 20


def log_notice(message: str) -> None:
    """Fallback notifier: log only."""
    logger.warning(f"Notice: {message}")


class NoticeBoard:
    """Records notices for the host to display."""

    def __init__(self, max_notices: int = MAX_RECENT_NOTICES) -> None:
        self._notices: deque[tuple[datetime, str]] = deque(maxlen=max_notices)

    def __call__(self, message: str) -> None:
        log_notice(message)
        self._notices.append((datetime.now(UTC), message))

    def recent(self) -> list[str]:
        """Most recent notices, oldest first."""
        return [message for _, message in self._notices]

    def clear(self) -> None:
        self._notices.clear()

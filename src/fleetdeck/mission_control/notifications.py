"""Single-slot review notification channel.

Created: 2026-02-11

After a human submits a batch of decisions, a summary is left here for the
coordinating agent, which polls ``GET /api/reviews/pending``. There is only
ever one slot: a new notification replaces an unread one. That is fine
because the notification carries counts and titles; the decisions
themselves live in the review store.
"""

import json
import logging
from pathlib import Path

from fleetdeck.config import get_settings
from fleetdeck.errors import StorageError
from fleetdeck.mission_control.models import ReviewNotification

logger = logging.getLogger(__name__)


class InMemoryNotificationChannel:
    """Notification slot held in process memory."""

    def __init__(self) -> None:
        self._slot: ReviewNotification | None = None

    async def write(self, notification: ReviewNotification) -> None:
        self._slot = notification

    async def read(self, peek: bool = False) -> ReviewNotification | None:
        notification = self._slot
        if not peek:
            self._slot = None
        return notification


class FileNotificationChannel:
    """Notification slot stored as ``pending-notification.json``."""

    def __init__(self, base_path: Path | None = None):
        if base_path is None:
            base_path = get_settings().reviews_dir
        self.base_path = Path(base_path)
        self.path = self.base_path / "pending-notification.json"

    async def write(self, notification: ReviewNotification) -> None:
        self.base_path.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(notification.to_dict(), f, indent=2, ensure_ascii=False)
            temp_path.replace(self.path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StorageError(f"Error writing {self.path}: {e}") from e

    async def read(self, peek: bool = False) -> ReviewNotification | None:
        if not self.path.exists():
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Error reading {self.path}: {e}")
            return None

        if not peek:
            self.path.unlink(missing_ok=True)
        return ReviewNotification.from_dict(data)


# =========================================================================
# Factory Function
# =========================================================================

_channel_instance: FileNotificationChannel | None = None


def get_notification_channel() -> FileNotificationChannel:
    """Get or create the notification channel singleton."""
    global _channel_instance
    if _channel_instance is None:
        _channel_instance = FileNotificationChannel()
    return _channel_instance


def reset_notification_channel() -> None:
    """Reset the channel singleton (for testing)."""
    global _channel_instance
    _channel_instance = None

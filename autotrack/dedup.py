"""Once-a-day de-duplication of outbound maintenance notifications."""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Set, Union

import yaml

logger = logging.getLogger(__name__)


def day_key(now: Union[date, datetime]) -> str:
    if isinstance(now, datetime):
        now = now.date()
    return now.isoformat()


class SentLog:
    """
    Remembers which records were notified today.

    Keys are "<record id>-<ISO day>". The whole set is dropped as soon as
    the day changes, so it never grows past one day of notifications.

    With a path, the set is kept in a small YAML file so a restarted
    notifier does not repeat itself. Storage problems are logged and
    otherwise ignored: the worst outcome is one duplicate notification.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else None
        self._day: Optional[str] = None
        self._sent: Set[str] = set()
        if self.path is not None:
            self._load()

    def _load(self) -> None:
        try:
            with open(self.path, "r") as fp:
                data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
            self._day = str(data["date"])
            self._sent = set(str(n) for n in data.get("notifications") or [])
        except FileNotFoundError:
            pass
        except (OSError, yaml.YAMLError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable sent log %s: %s", self.path, e)
            self._day = None
            self._sent = set()

    def _save(self) -> None:
        if self.path is None:
            return
        data = {"date": self._day, "notifications": sorted(self._sent)}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as fp:
                yaml.dump(data, fp, default_flow_style=False, sort_keys=False)
        except OSError as e:
            logger.warning("Could not save sent log %s: %s", self.path, e)

    def _roll_over(self, now: Union[date, datetime]) -> str:
        today = day_key(now)
        if self._day != today:
            self._day = today
            self._sent = set()
        return today

    def should_notify(self, record_id: int, now: Union[date, datetime]) -> bool:
        """True unless this record was already notified on now's day."""
        today = self._roll_over(now)
        return f"{record_id}-{today}" not in self._sent

    def mark_sent(self, record_id: int, now: Union[date, datetime]) -> None:
        """Record a notification for this record on now's day."""
        today = self._roll_over(now)
        self._sent.add(f"{record_id}-{today}")
        self._save()

"""Status enum for maintenance urgency levels."""

from enum import Enum


class Status(Enum):
    """Due status of a maintenance record."""

    OVERDUE = "overdue"
    IMMINENT = "imminent"
    NONE = "none"

    @property
    def rank(self) -> int:
        """Lower rank = more urgent."""
        return _RANKS[self]


_RANKS = {Status.OVERDUE: 1, Status.IMMINENT: 2, Status.NONE: 3}

"""DueStatus dataclass for the evaluated state of one maintenance record."""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .status import Status


@dataclass(frozen=True)
class DueStatus:
    """Result of evaluating a record. Derived on demand, never stored."""

    is_due: bool = False
    status: Status = Status.NONE
    days_until: float = math.inf
    km_until: Optional[int] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly form; an unknown daysUntil becomes None."""
        return {
            "isDue": self.is_due,
            "status": self.status.value,
            "daysUntil": None if math.isinf(self.days_until) else self.days_until,
            "kmUntil": self.km_until,
            "reason": self.reason,
        }

"""KitchenSwap: a request to exchange the cooks of two days of a week plan."""
import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import field_validator

from kitchen.domain.Document import Document
from kitchen.utilities.dates import get_week_start


class SwapStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class KitchenSwap(Document):
    household_id: str
    week_start: dt.date
    from_user_id: str
    to_user_id: str
    from_date: dt.date
    to_date: dt.date
    status: SwapStatus = SwapStatus.PENDING
    resolved_at: Optional[dt.datetime] = None

    @field_validator("week_start")
    @classmethod
    def monday(cls, v):
        return get_week_start(v)

    @property
    def is_pending(self) -> bool:
        return self.status is SwapStatus.PENDING

    def resolve(self, status: SwapStatus):
        self.status = status
        self.resolved_at = dt.datetime.now(dt.timezone.utc)

    def __str__(self) -> str:
        return (f"Swap {self.from_date.isoformat()} <-> {self.to_date.isoformat()} "
                f"({self.from_user_id} -> {self.to_user_id}): {self.status.value}")


__all__ = ["SwapStatus", "KitchenSwap"]

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from leadflow.schemas.common import ReminderKind, ReminderRunStatus


class ReminderKindCounts(BaseModel):
    """Per-kind outcome counters for one reminder pass."""

    candidates: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    flag_update_failed: int = 0


class ReminderRunSummary(BaseModel):
    """Result of one reminder pass.

    ``partial_failure`` means at least one send or flag update failed;
    ``failed`` means a candidate query failed and nothing was sent.
    """

    status: ReminderRunStatus = ReminderRunStatus.success
    reference_time: datetime
    counts: Dict[ReminderKind, ReminderKindCounts] = Field(
        default_factory=lambda: {kind: ReminderKindCounts() for kind in ReminderKind}
    )
    error: Optional[str] = None

    @property
    def total_sent(self) -> int:
        return sum(c.sent for c in self.counts.values())

    @property
    def total_failed(self) -> int:
        return sum(c.failed + c.flag_update_failed for c in self.counts.values())

"""Run a single reminder pass and exit.

Intended for an external scheduler (cron, a CI schedule, a k8s CronJob).

Usage:
    python -m leadflow.scripts.run_reminders

Exit codes:
    0  - every due reminder was sent and flagged
    1  - partial failure (some sends or flag updates failed)
    2  - the pass failed before sending anything
"""

import asyncio
import logging
import sys

from leadflow.core.config import settings
from leadflow.core.database import AsyncSessionLocal, engine
from leadflow.schemas.common import ReminderRunStatus
from leadflow.schemas.reminder import ReminderRunSummary
from leadflow.services.reminder_runner import run_reminder_pass

logger = logging.getLogger("leadflow.scripts.run_reminders")

EXIT_CODES = {
    ReminderRunStatus.success: 0,
    ReminderRunStatus.partial_failure: 1,
    ReminderRunStatus.failed: 2,
}


async def _run() -> ReminderRunSummary:
    try:
        return await run_reminder_pass(AsyncSessionLocal)
    finally:
        await engine.dispose()


def main() -> int:
    logging.basicConfig(level=settings.LOG_LEVEL)
    summary = asyncio.run(_run())
    for kind, counts in summary.counts.items():
        logger.info(
            "%s: candidates=%d sent=%d failed=%d skipped=%d flag_update_failed=%d",
            kind.value,
            counts.candidates,
            counts.sent,
            counts.failed,
            counts.skipped,
            counts.flag_update_failed,
        )
    return EXIT_CODES[summary.status]


if __name__ == "__main__":
    sys.exit(main())

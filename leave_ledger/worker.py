"""Worker process for scheduled accrual runs.

Runs an asyncio loop that opens the current ledger period for every
(employee, policy) pair. Runs are idempotent, so waking more often than the
period length only costs a no-op pass; a new period is opened on the first
wake after its boundary.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date

from leave_ledger.config import get_settings
from leave_ledger.db import get_session_factory
from leave_ledger.models.enums import LedgerPeriod
from leave_ledger.services.accrual import period_bounds, run_period_accruals

logger = logging.getLogger(__name__)


async def run_accruals_once(today: date | None = None) -> None:
    """Open the ledger period containing ``today`` for all companies."""
    today = today or date.today()
    settings = get_settings()
    period_start, period_end = period_bounds(today, LedgerPeriod(settings.ledger_period))
    logger.info("Running period accruals for %s..%s", period_start, period_end)

    async with get_session_factory()() as session:
        result = await run_period_accruals(session, period_start, period_end)

    if result.errors:
        logger.warning("Accrual run for %s..%s had %d errors", period_start, period_end, result.errors)


async def run_accrual_loop() -> None:
    """Main worker loop."""
    settings = get_settings()
    logger.info(
        "Accrual worker started (ledger_period=%s interval=%ss)",
        settings.ledger_period,
        settings.worker_interval_seconds,
    )

    while True:
        try:
            await run_accruals_once()
        except Exception:
            logger.exception("Accrual run failed")

        await asyncio.sleep(settings.worker_interval_seconds)


def main() -> None:
    """Entry point for the worker process."""
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    asyncio.run(run_accrual_loop())


if __name__ == "__main__":
    main()

"""Re-driving point awards for approved receipts that were never credited."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import RewardsConfig
    from .db import ReceiptStore

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    checked: int = 0
    credited: int = 0
    points: int = 0
    failed: list[str] = field(default_factory=list)


class AwardReconciler:
    """Finds approved receipts with no ledger entry and awards them.

    Safe to run repeatedly: the store's award is idempotent per receipt.
    """

    def __init__(self, store: ReceiptStore, batch_size: int = 100) -> None:
        self._store = store
        self._batch_size = batch_size

    def run_once(self) -> ReconcileReport:
        report = ReconcileReport()
        for receipt_id in self._store.find_unawarded(self._batch_size):
            report.checked += 1
            try:
                points = self._store.award_points(receipt_id)
            except Exception:
                logger.exception("Award retry failed for receipt %s", receipt_id)
                report.failed.append(receipt_id)
                continue
            report.credited += 1
            report.points += points
            logger.info("Credited %d points for receipt %s", points, receipt_id)

        if report.checked:
            logger.info(
                "Reconciled %d/%d receipts (%d failed)",
                report.credited,
                report.checked,
                len(report.failed),
            )
        return report


class ReconcileScheduler:
    """Runs award reconciliation on a cron schedule.

    Uses APScheduler for cron-based scheduling.
    """

    def __init__(self, config: RewardsConfig) -> None:
        """Initialize scheduler with a RewardsConfig.

        Raises:
            ImportError: If apscheduler is not installed.
        """
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.cron import CronTrigger
        except ImportError:
            raise ImportError(
                "apscheduler is required: pip install 'niche-rewards[scheduler]'"
            )

        self._config = config
        self._scheduler = AsyncIOScheduler()
        self._CronTrigger = CronTrigger
        self._running = False

    def setup_jobs(self) -> None:
        trigger = self._parse_cron(self._config.reconcile.schedule)
        self._scheduler.add_job(
            self._job_reconcile,
            trigger=trigger,
            id="reconcile_awards",
            name="Award reconciliation",
            replace_existing=True,
        )
        logger.info("Registered award reconciliation: %s", self._config.reconcile.schedule)

    def start(self) -> None:
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("Scheduler started")

    def stop(self) -> None:
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": str(job.next_run_time) if getattr(job, "next_run_time", None) else None,
            })
        return jobs

    def _parse_cron(self, expr: str):
        """Parse a cron expression into a CronTrigger."""
        parts = expr.split()
        if len(parts) == 5:
            return self._CronTrigger(
                minute=parts[0],
                hour=parts[1],
                day=parts[2],
                month=parts[3],
                day_of_week=parts[4],
            )
        raise ValueError(f"Invalid cron expression: {expr}")

    async def _job_reconcile(self) -> None:
        logger.info("Running award reconciliation...")

        try:
            from .db import create_store

            store = create_store(self._config)
            try:
                AwardReconciler(store, self._config.reconcile.batch_size).run_once()
            finally:
                store.close()
        except Exception:
            logger.exception("Award reconciliation failed")

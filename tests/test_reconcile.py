"""Tests for award reconciliation and its scheduler."""

from unittest.mock import MagicMock

import pytest

from niche.rewards.config import load_config
from niche.rewards.db import SQLiteReceiptStore
from niche.rewards.errors import StoreError
from niche.rewards.models import ReceiptRecord, ReceiptStatus
from niche.rewards.reconcile import AwardReconciler, ReconcileReport


def _approved(store, day, points):
    return store.insert_receipt(ReceiptRecord(
        user_id="u1",
        image_key=f"u1/receipt_{day}.jpg",
        fingerprint=f"r3|pso|2024-03-0{day}|{points * 100}",
        status=ReceiptStatus.APPROVED,
        total_cents=points * 100,
        points=points,
    ))


class TestAwardReconciler:
    def test_credits_missing_awards(self, tmp_path):
        store = SQLiteReceiptStore(tmp_path / "rewards.db")
        done = _approved(store, 1, 10)
        _approved(store, 2, 20)
        _approved(store, 3, 30)
        store.award_points(done)

        report = AwardReconciler(store).run_once()

        assert report.checked == 2
        assert report.credited == 2
        assert report.points == 50
        assert report.failed == []
        assert store.get_balance("u1") == 60
        assert store.find_unawarded() == []
        store.close()

    def test_second_run_is_noop(self, tmp_path):
        store = SQLiteReceiptStore(tmp_path / "rewards.db")
        _approved(store, 1, 10)

        AwardReconciler(store).run_once()
        report = AwardReconciler(store).run_once()

        assert report == ReconcileReport()
        assert len(store.get_ledger("u1")) == 1
        store.close()

    def test_failures_are_reported(self):
        store = MagicMock()
        store.find_unawarded.return_value = ["a", "b"]
        store.award_points.side_effect = [StoreError("timeout"), 15]

        report = AwardReconciler(store, batch_size=5).run_once()

        store.find_unawarded.assert_called_once_with(5)
        assert report.checked == 2
        assert report.credited == 1
        assert report.points == 15
        assert report.failed == ["a"]


def test_scheduler_import_error():
    """ReconcileScheduler raises ImportError if apscheduler is missing."""
    try:
        from niche.rewards.reconcile import ReconcileScheduler

        scheduler = ReconcileScheduler(load_config())
        assert scheduler is not None
        assert scheduler.running is False
    except ImportError:
        pass


def test_scheduler_setup_jobs():
    """Scheduler registers the reconciliation job."""
    try:
        from niche.rewards.reconcile import ReconcileScheduler

        config = load_config()
        config.reconcile.schedule = "*/5 * * * *"

        scheduler = ReconcileScheduler(config)
        scheduler.setup_jobs()

        job_ids = {j["id"] for j in scheduler.get_jobs()}
        assert job_ids == {"reconcile_awards"}
    except ImportError:
        pytest.skip("apscheduler not installed")


def test_scheduler_parse_cron_invalid():
    """Invalid cron expression raises ValueError."""
    try:
        from niche.rewards.reconcile import ReconcileScheduler

        scheduler = ReconcileScheduler(load_config())
        with pytest.raises(ValueError, match="Invalid cron"):
            scheduler._parse_cron("bad")
    except ImportError:
        pytest.skip("apscheduler not installed")


@pytest.mark.asyncio
async def test_scheduler_job_runs_reconciler(tmp_path):
    from niche.rewards.reconcile import ReconcileScheduler

    config = load_config()
    config.database.path = str(tmp_path / "rewards.db")
    store = SQLiteReceiptStore(config.database.path)
    _approved(store, 1, 10)
    store.close()

    try:
        scheduler = ReconcileScheduler(config)
    except ImportError:
        pytest.skip("apscheduler not installed")
    await scheduler._job_reconcile()

    store = SQLiteReceiptStore(config.database.path)
    assert store.get_balance("u1") == 10
    store.close()

"""Approval classification and point calculation."""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal

from .config import ScoringConfig
from .models import ReceiptStatus

_DEFAULT_POLICY = ScoringConfig()


def classify_status(
    confidence: float,
    category: str,
    policy: ScoringConfig = _DEFAULT_POLICY,
) -> ReceiptStatus:
    """Decide approved / queued / rejected from the extraction confidence.

    The fuel override runs after the general thresholds and only ever
    upgrades ``queued`` to ``approved``.
    """
    if confidence >= policy.approve_threshold:
        status = ReceiptStatus.APPROVED
    elif confidence < policy.reject_threshold:
        status = ReceiptStatus.REJECTED
    else:
        status = ReceiptStatus.QUEUED

    if (
        status is ReceiptStatus.QUEUED
        and category == "fuel"
        and confidence >= policy.fuel_approve_threshold
    ):
        status = ReceiptStatus.APPROVED
    return status


def calculate_points(
    total_cents: int,
    category: str,
    policy: ScoringConfig = _DEFAULT_POLICY,
) -> int:
    """One point per whole unit of currency; fuel earns the multiplier.

    >>> calculate_points(8945, "grocery")
    89
    >>> calculate_points(8945, "fuel")
    133
    """
    base = max(int(total_cents), 0) // 100
    if category != "fuel":
        return base
    boosted = Decimal(base) * Decimal(str(policy.fuel_multiplier))
    return int(boosted.to_integral_value(rounding=ROUND_FLOOR))

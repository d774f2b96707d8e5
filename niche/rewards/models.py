"""Data models for receipt submissions, extractions and stored records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

CATEGORIES: tuple[str, ...] = ("fuel", "grocery", "restaurant", "pharmacy", "other")
PAYMENT_METHODS: tuple[str, ...] = ("cash", "card", "mobile-wallet")


class ReceiptStatus(str, Enum):
    """Outcome of a receipt submission."""

    APPROVED = "approved"
    REJECTED = "rejected"
    QUEUED = "queued"
    DUPLICATE = "duplicate"  # submission outcome only, never stored


@dataclass
class ReceiptSubmission:
    """An uploaded receipt image waiting to be processed."""

    user_id: str
    image_key: str


@dataclass
class LineItem:
    name: str
    price_cents: int = 0


@dataclass
class ExtractedReceipt:
    """Structured purchase data read from a receipt image.

    Every field has already been defaulted; ``raw`` keeps the parsed model
    output as it was returned.
    """

    retailer: str = "Unknown"
    category: str = "other"
    purchase_date: date | None = None
    total_cents: int = 0
    currency: str = "PKR"
    invoice_number: str | None = None
    payment_method: str | None = None
    card_last_four: str | None = None
    confidence: float = 0.0
    line_items: list[LineItem] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class ReceiptRecord:
    """A receipt row as written to the receipt store."""

    user_id: str
    image_key: str
    fingerprint: str
    status: ReceiptStatus
    retailer: str = "Unknown"
    category: str = "other"
    purchase_date: str = ""  # ISO date
    total_cents: int = 0
    currency: str = "PKR"
    invoice_number: str | None = None
    payment_method: str | None = None
    card_last_four: str | None = None
    confidence: float = 0.0
    points: int = 0
    ocr_provider: str = ""
    ocr_json: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    created_at: str | None = None


@dataclass
class LedgerEntry:
    """A single credit or debit in a user's points ledger."""

    id: str
    user_id: str
    delta: int
    reason: str
    balance_after: int
    receipt_id: str | None = None
    created_at: str = ""

    @property
    def type(self) -> str:
        return "earned" if self.delta >= 0 else "redeemed"

    @property
    def amount(self) -> int:
        return abs(self.delta)


_MESSAGES: dict[ReceiptStatus, str] = {
    ReceiptStatus.APPROVED: "Receipt approved and points awarded!",
    ReceiptStatus.QUEUED: "Receipt submitted for review",
    ReceiptStatus.REJECTED: "Receipt could not be processed",
    ReceiptStatus.DUPLICATE: "This receipt has already been submitted",
}


@dataclass
class SubmissionResult:
    """What the caller gets back from a submission."""

    status: ReceiptStatus
    retailer: str
    total_cents: int
    points_awarded: int = 0
    receipt_id: str | None = None
    award_pending: bool = False

    @property
    def success(self) -> bool:
        return self.status is not ReceiptStatus.DUPLICATE

    @property
    def total(self) -> float:
        return self.total_cents / 100

    @property
    def message(self) -> str:
        if self.award_pending:
            return "Receipt approved; points will be credited shortly"
        return _MESSAGES[self.status]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "status": self.status.value,
            "points_awarded": self.points_awarded,
            "retailer": self.retailer,
            "total": self.total,
            "message": self.message,
        }
        if self.receipt_id is not None:
            data["receipt_id"] = self.receipt_id
        if self.award_pending:
            data["award_pending"] = True
        return data

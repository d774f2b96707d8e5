"""Receipt store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import LedgerEntry, ReceiptRecord


class ReceiptStore(ABC):
    """Persists receipts and the points ledger.

    The store owns duplicate detection: ``insert_receipt`` must enforce the
    fingerprint uniqueness atomically and ``award_points`` must be
    idempotent per receipt.
    """

    @abstractmethod
    def insert_receipt(self, record: ReceiptRecord) -> str:
        """Insert a receipt and return its id.

        Raises:
            DuplicateReceipt: If the fingerprint already exists.
            StoreError: On any other failure.
        """
        ...

    @abstractmethod
    def award_points(self, receipt_id: str) -> int:
        """Credit the points of an approved receipt to its owner's ledger.

        Calling it again for the same receipt credits nothing.

        Returns:
            The number of points credited by this call.
        """
        ...

    @abstractmethod
    def list_receipts(self, user_id: str) -> list[ReceiptRecord]:
        """Return the user's receipts, newest first."""
        ...

    @abstractmethod
    def get_ledger(self, user_id: str) -> list[LedgerEntry]:
        """Return the user's ledger entries, newest first."""
        ...

    @abstractmethod
    def get_balance(self, user_id: str) -> int:
        ...

    @abstractmethod
    def find_unawarded(self, limit: int = 100) -> list[str]:
        """Return ids of approved receipts without a ledger entry, oldest first."""
        ...

    def close(self) -> None:
        pass

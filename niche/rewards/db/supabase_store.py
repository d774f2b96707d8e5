"""Receipt store on Supabase (PostgreSQL via PostgREST)."""

from __future__ import annotations

import logging
from typing import Any

from ..errors import DuplicateReceipt, StoreError
from ..models import LedgerEntry, ReceiptRecord, ReceiptStatus
from .base import ReceiptStore

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"

_PAGE_SIZE = 500


class SupabaseReceiptStore(ReceiptStore):
    """Persistent receipt storage using Supabase PostgreSQL.

    Expects a ``receipts`` table with a unique index on ``hash_text``, a
    ``points_ledger`` table with a unique ``receipt_id``, and an
    ``award_points_for_receipt(rid)`` procedure that inserts the ledger row.
    """

    def __init__(self, client) -> None:
        self.client = client

    def insert_receipt(self, record: ReceiptRecord) -> str:
        row = {
            "user_id": record.user_id,
            "image_key": record.image_key,
            "ocr_json": record.ocr_json,
            "ocr_provider": record.ocr_provider,
            "retailer": record.retailer,
            "category": record.category,
            "purchase_date": record.purchase_date or None,
            "total_cents": record.total_cents,
            "currency": record.currency,
            "invoice_number": record.invoice_number,
            "payment_method": record.payment_method,
            "card_last4": record.card_last_four,
            "hash_text": record.fingerprint,
            "confidence": record.confidence,
            "status": record.status.value,
            "points": record.points,
        }
        try:
            result = self.client.table("receipts").insert(row).execute()
        except Exception as e:
            if getattr(e, "code", None) == UNIQUE_VIOLATION:
                raise DuplicateReceipt(record.fingerprint) from e
            raise StoreError(f"Failed to save receipt: {e}") from e

        if not result.data:
            raise StoreError("Failed to save receipt: no row returned")
        receipt_id = str(result.data[0]["id"])
        logger.info("Created receipt in database: %s", receipt_id)
        return receipt_id

    def award_points(self, receipt_id: str) -> int:
        """Run the award procedure; its integer result, if any, is returned."""
        try:
            result = self.client.rpc(
                "award_points_for_receipt", {"rid": receipt_id}
            ).execute()
        except Exception as e:
            raise StoreError(f"Failed to award points for {receipt_id}: {e}") from e
        return result.data if isinstance(result.data, int) else 0

    def list_receipts(self, user_id: str) -> list[ReceiptRecord]:
        result = (
            self.client.table("receipts")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [_row_to_record(row) for row in result.data or []]

    def get_ledger(self, user_id: str) -> list[LedgerEntry]:
        result = (
            self.client.table("points_ledger")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [
            LedgerEntry(
                id=str(row["id"]),
                user_id=row["user_id"],
                delta=row["delta"],
                reason=row.get("reason") or "",
                balance_after=row.get("balance_after") or 0,
                receipt_id=row.get("receipt_id"),
                created_at=row.get("created_at") or "",
            )
            for row in result.data or []
        ]

    def get_balance(self, user_id: str) -> int:
        ledger = self.get_ledger(user_id)
        return ledger[0].balance_after if ledger else 0

    def find_unawarded(self, limit: int = 100) -> list[str]:
        found: list[str] = []
        offset = 0
        while len(found) < limit:
            page = (
                self.client.table("receipts")
                .select("id")
                .eq("status", ReceiptStatus.APPROVED.value)
                .order("created_at")
                .range(offset, offset + _PAGE_SIZE - 1)
                .execute()
            )
            ids = [str(row["id"]) for row in page.data or []]
            if not ids:
                break
            awarded = (
                self.client.table("points_ledger")
                .select("receipt_id")
                .in_("receipt_id", ids)
                .execute()
            )
            done = {str(row["receipt_id"]) for row in awarded.data or []}
            found.extend(i for i in ids if i not in done)
            if len(ids) < _PAGE_SIZE:
                break
            offset += _PAGE_SIZE
        return found[:limit]


def _row_to_record(row: dict[str, Any]) -> ReceiptRecord:
    return ReceiptRecord(
        id=str(row["id"]),
        user_id=row["user_id"],
        image_key=row.get("image_key") or "",
        fingerprint=row.get("hash_text") or "",
        status=ReceiptStatus(row["status"]),
        retailer=row.get("retailer") or "Unknown",
        category=row.get("category") or "other",
        purchase_date=row.get("purchase_date") or "",
        total_cents=row.get("total_cents") or 0,
        currency=row.get("currency") or "PKR",
        invoice_number=row.get("invoice_number"),
        payment_method=row.get("payment_method"),
        card_last_four=row.get("card_last4"),
        confidence=row.get("confidence") or 0.0,
        points=row.get("points") or 0,
        ocr_provider=row.get("ocr_provider") or "",
        ocr_json=row.get("ocr_json") or {},
        created_at=row.get("created_at"),
    )

"""SQLite receipt store and points ledger."""

from __future__ import annotations

import json
import sqlite3
import uuid
from pathlib import Path

from ..errors import DuplicateReceipt, StoreError
from ..models import LedgerEntry, ReceiptRecord, ReceiptStatus
from .base import ReceiptStore
from .schema import ensure_schema


class SQLiteReceiptStore(ReceiptStore):
    """Manages the receipts and points_ledger tables."""

    def __init__(self, db_path: str | Path = "~/.config/niche-rewards/rewards.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def insert_receipt(self, record: ReceiptRecord) -> str:
        conn = self._get_conn()
        receipt_id = uuid.uuid4().hex
        try:
            conn.execute(
                """INSERT INTO receipts
                   (id, user_id, image_key, ocr_json, ocr_provider, retailer,
                    category, purchase_date, total_cents, currency,
                    invoice_number, payment_method, card_last_four,
                    fingerprint, confidence, status, points)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    receipt_id,
                    record.user_id,
                    record.image_key,
                    json.dumps(record.ocr_json, ensure_ascii=False),
                    record.ocr_provider,
                    record.retailer,
                    record.category,
                    record.purchase_date or None,
                    record.total_cents,
                    record.currency,
                    record.invoice_number,
                    record.payment_method,
                    record.card_last_four,
                    record.fingerprint,
                    record.confidence,
                    record.status.value,
                    record.points,
                ),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            if "receipts.fingerprint" in str(e):
                raise DuplicateReceipt(record.fingerprint) from e
            raise StoreError(f"Failed to save receipt: {e}") from e
        except (sqlite3.Error, OverflowError) as e:
            # OverflowError: integer outside SQLite's 64-bit range
            conn.rollback()
            raise StoreError(f"Failed to save receipt: {e}") from e
        return receipt_id

    def award_points(self, receipt_id: str) -> int:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT status FROM receipts WHERE id = ?", (receipt_id,)
        ).fetchone()
        if row is None:
            raise StoreError(f"Unknown receipt: {receipt_id}")
        if row["status"] != ReceiptStatus.APPROVED.value:
            raise StoreError(
                f"Receipt {receipt_id} is {row['status']}, not approved"
            )

        # One statement: the UNIQUE receipt_id makes a repeat a no-op.
        cur = conn.execute(
            """INSERT OR IGNORE INTO points_ledger
               (user_id, receipt_id, delta, reason, balance_after)
               SELECT r.user_id, r.id, r.points, 'receipt',
                      r.points + COALESCE(
                          (SELECT SUM(delta) FROM points_ledger
                           WHERE user_id = r.user_id), 0)
               FROM receipts r
               WHERE r.id = ?""",
            (receipt_id,),
        )
        conn.commit()
        if cur.rowcount == 0:
            return 0
        credited = conn.execute(
            "SELECT delta FROM points_ledger WHERE receipt_id = ?", (receipt_id,)
        ).fetchone()
        return credited["delta"]

    def list_receipts(self, user_id: str) -> list[ReceiptRecord]:
        conn = self._get_conn()
        rows = conn.execute(
            """SELECT * FROM receipts WHERE user_id = ?
               ORDER BY created_at DESC, rowid DESC""",
            (user_id,),
        ).fetchall()
        return [_row_to_record(r) for r in rows]

    def get_receipt(self, receipt_id: str) -> ReceiptRecord | None:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT * FROM receipts WHERE id = ?", (receipt_id,)
        ).fetchone()
        return _row_to_record(row) if row else None

    def get_ledger(self, user_id: str) -> list[LedgerEntry]:
        conn = self._get_conn()
        rows = conn.execute(
            """SELECT * FROM points_ledger WHERE user_id = ?
               ORDER BY id DESC""",
            (user_id,),
        ).fetchall()
        return [
            LedgerEntry(
                id=str(r["id"]),
                user_id=r["user_id"],
                delta=r["delta"],
                reason=r["reason"],
                balance_after=r["balance_after"],
                receipt_id=r["receipt_id"],
                created_at=r["created_at"],
            )
            for r in rows
        ]

    def get_balance(self, user_id: str) -> int:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT COALESCE(SUM(delta), 0) AS balance FROM points_ledger WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        return row["balance"]

    def find_unawarded(self, limit: int = 100) -> list[str]:
        conn = self._get_conn()
        rows = conn.execute(
            """SELECT r.id FROM receipts r
               LEFT JOIN points_ledger l ON l.receipt_id = r.id
               WHERE r.status = 'approved' AND l.id IS NULL
               ORDER BY r.created_at, r.rowid
               LIMIT ?""",
            (limit,),
        ).fetchall()
        return [r["id"] for r in rows]


def _row_to_record(row: sqlite3.Row) -> ReceiptRecord:
    d = dict(row)
    try:
        ocr_json = json.loads(d["ocr_json"]) if d["ocr_json"] else {}
    except (json.JSONDecodeError, TypeError):
        ocr_json = {}
    return ReceiptRecord(
        id=d["id"],
        user_id=d["user_id"],
        image_key=d["image_key"],
        fingerprint=d["fingerprint"],
        status=ReceiptStatus(d["status"]),
        retailer=d["retailer"],
        category=d["category"],
        purchase_date=d["purchase_date"] or "",
        total_cents=d["total_cents"],
        currency=d["currency"],
        invoice_number=d["invoice_number"],
        payment_method=d["payment_method"],
        card_last_four=d["card_last_four"],
        confidence=d["confidence"],
        points=d["points"],
        ocr_provider=d["ocr_provider"],
        ocr_json=ocr_json,
        created_at=d["created_at"],
    )

"""Tests for database schema creation and migration."""

import sqlite3

import pytest

from niche.rewards.db.schema import _SCHEMA_VERSION, ensure_schema


def _insert_receipt(conn, receipt_id, fingerprint, total_cents=100):
    conn.execute(
        """INSERT INTO receipts (id, user_id, image_key, fingerprint, status, total_cents)
           VALUES (?, 'u1', 'u1/receipt_1.jpg', ?, 'approved', ?)""",
        (receipt_id, fingerprint, total_cents),
    )


def test_ensure_schema_creates_tables(tmp_path):
    """Schema creates the receipt and ledger tables."""
    conn = ensure_schema(tmp_path / "test.db")

    tables = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    ).fetchall()
    table_names = {row["name"] for row in tables}

    assert "receipts" in table_names
    assert "points_ledger" in table_names
    assert "schema_version" in table_names

    conn.close()


def test_ensure_schema_creates_parent_dirs(tmp_path):
    """Schema creates parent directories if they don't exist."""
    db_path = tmp_path / "sub" / "dir" / "test.db"
    conn = ensure_schema(db_path)
    assert db_path.exists()
    conn.close()


def test_ensure_schema_idempotent(tmp_path):
    """Calling ensure_schema twice keeps the version and data."""
    db_path = tmp_path / "test.db"
    conn1 = ensure_schema(db_path)
    _insert_receipt(conn1, "r1", "r3|shop|2024-03-01|100")
    conn1.commit()
    conn1.close()

    conn2 = ensure_schema(db_path)
    row = conn2.execute("SELECT version FROM schema_version").fetchone()
    assert row["version"] == _SCHEMA_VERSION
    assert conn2.execute("SELECT COUNT(*) FROM receipts").fetchone()[0] == 1
    conn2.close()


def test_ensure_schema_wal_mode(tmp_path):
    conn = ensure_schema(tmp_path / "test.db")
    mode = conn.execute("PRAGMA journal_mode").fetchone()
    assert mode[0] == "wal"
    conn.close()


def test_receipts_columns(tmp_path):
    """receipts table has expected columns."""
    conn = ensure_schema(tmp_path / "test.db")

    info = conn.execute("PRAGMA table_info(receipts)").fetchall()
    col_names = {row["name"] for row in info}

    expected = {
        "id", "user_id", "image_key", "ocr_json", "ocr_provider", "retailer",
        "category", "purchase_date", "total_cents", "currency",
        "invoice_number", "payment_method", "card_last_four", "fingerprint",
        "confidence", "status", "points", "created_at",
    }
    assert expected.issubset(col_names)

    conn.close()


def test_fingerprint_is_unique(tmp_path):
    conn = ensure_schema(tmp_path / "test.db")
    _insert_receipt(conn, "r1", "r3|shop|2024-03-01|100")
    with pytest.raises(sqlite3.IntegrityError, match="receipts.fingerprint"):
        _insert_receipt(conn, "r2", "r3|shop|2024-03-01|100")
    conn.close()


def test_negative_total_rejected(tmp_path):
    conn = ensure_schema(tmp_path / "test.db")
    with pytest.raises(sqlite3.IntegrityError):
        _insert_receipt(conn, "r1", "r3|shop|2024-03-01|-1", total_cents=-1)
    conn.close()


def test_one_ledger_row_per_receipt(tmp_path):
    conn = ensure_schema(tmp_path / "test.db")
    _insert_receipt(conn, "r1", "r3|shop|2024-03-01|100")
    sql = """INSERT INTO points_ledger (user_id, receipt_id, delta, reason, balance_after)
             VALUES ('u1', 'r1', 1, 'receipt', 1)"""
    conn.execute(sql)
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(sql)
    conn.close()


def test_ledger_columns(tmp_path):
    conn = ensure_schema(tmp_path / "test.db")

    info = conn.execute("PRAGMA table_info(points_ledger)").fetchall()
    col_names = {row["name"] for row in info}

    assert col_names == {
        "id", "user_id", "receipt_id", "delta", "reason", "balance_after", "created_at",
    }

    conn.close()

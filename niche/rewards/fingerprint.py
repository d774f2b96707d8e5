"""Duplicate-detection fingerprints for receipts."""

from __future__ import annotations

import re
from datetime import date

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_retailer(name: str) -> str:
    """Lowercase the retailer name and drop everything but ``a-z0-9``."""
    return _NON_ALNUM.sub("", (name or "").lower())


def compute_fingerprint(
    retailer: str,
    purchase_date: date | str,
    total_cents: int,
    invoice_number: str | None = None,
) -> str:
    """Build the dedup key for a purchase.

    The key is tagged with the number of parts (``r3`` / ``r4``) so a key
    without an invoice number can never equal one that has it. The invoice
    number is always the last part, so it may contain the separator.
    """
    if isinstance(purchase_date, date):
        purchase_date = purchase_date.isoformat()
    parts = [normalize_retailer(retailer), purchase_date, str(int(total_cents))]
    invoice = (invoice_number or "").strip()
    if invoice:
        return "r4|" + "|".join([*parts, invoice])
    return "r3|" + "|".join(parts)

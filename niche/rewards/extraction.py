"""OCR prompt and parsing of the model's receipt JSON."""

from __future__ import annotations

import json
import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .errors import MalformedExtraction
from .models import CATEGORIES, PAYMENT_METHODS, ExtractedReceipt, LineItem

RECEIPT_PROMPT = """\
This image is a photographed purchase receipt.
Read it and return ONLY a JSON object in the following shape (no other text):
{
  "retailer_name": "store or station name",
  "retailer_category": "fuel | grocery | restaurant | pharmacy | other",
  "purchase_date": "YYYY-MM-DD",
  "total_amount": 0.00,
  "currency": "PKR",
  "invoice_number": "invoice / bill number or null",
  "payment_method": "cash | card | mobile-wallet or null",
  "card_last_four": "last four card digits if paid by card, else null",
  "confidence": 0-100,
  "line_items": [{"name": "item name", "price": 0.00}]
}

retailer_category must be one of: fuel, grocery, restaurant, pharmacy, other.
payment_method must be one of: cash, card, mobile-wallet, or null.
total_amount is the final amount paid, as a number without currency symbols.
confidence is how sure you are the receipt was read correctly: 80-100 when
everything is clearly legible, 30-80 when some fields are uncertain, below 30
when the image is not a readable receipt.
"""


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences around a model response."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)
    return cleaned.strip()


def parse_response(text: str, default_currency: str = "PKR") -> ExtractedReceipt:
    """Parse raw model text into an :class:`ExtractedReceipt`.

    Raises:
        MalformedExtraction: If the text is not a JSON object.
    """
    cleaned = strip_code_fences(text or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedExtraction(f"OCR response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedExtraction(
            f"OCR response is a {type(data).__name__}, expected an object"
        )
    return extract_receipt(data, default_currency)


def extract_receipt(
    data: dict[str, Any], default_currency: str = "PKR"
) -> ExtractedReceipt:
    """Apply the defaulting rules to an untrusted receipt object."""
    payment_method = _choice(data.get("payment_method"), PAYMENT_METHODS)
    card_last_four = None
    if payment_method == "card":
        digits = str(data.get("card_last_four") or "").strip()
        if len(digits) == 4 and digits.isdigit():
            card_last_four = digits

    invoice = _text(data.get("invoice_number"))
    if invoice.lower() in ("", "null", "none", "n/a"):
        invoice = None

    return ExtractedReceipt(
        retailer=_text(data.get("retailer_name")) or "Unknown",
        category=_choice(data.get("retailer_category"), CATEGORIES) or "other",
        purchase_date=parse_date(data.get("purchase_date")),
        total_cents=to_cents(data.get("total_amount")),
        currency=_text(data.get("currency")).upper() or default_currency,
        invoice_number=invoice,
        payment_method=payment_method,
        card_last_four=card_last_four,
        confidence=normalize_confidence(data.get("confidence")),
        line_items=_line_items(data.get("line_items")),
        raw=data,
    )


def to_cents(value: Any) -> int:
    """Convert a major-unit amount to integer minor units.

    Rounds half up. Absent, non-numeric, non-finite and negative amounts
    all become 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return 0
    if not amount.is_finite() or amount < 0:
        return 0
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def normalize_confidence(value: Any) -> float:
    """Map the model's 0-100 confidence score onto [0, 1].

    The prompt fixes the scale, so every value is a percentage. Missing,
    non-numeric and non-finite values become 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(score):
        return 0.0
    return min(max(score / 100, 0.0), 1.0)


def parse_date(value: Any) -> date | None:
    """Parse an ISO ``YYYY-MM-DD`` date, tolerating a trailing time part."""
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _choice(value: Any, allowed: tuple[str, ...]) -> str | None:
    normalized = _text(value).lower().replace("_", "-").replace(" ", "-")
    return normalized if normalized in allowed else None


def _line_items(value: Any) -> list[LineItem]:
    if not isinstance(value, list):
        return []
    items: list[LineItem] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        items.append(
            LineItem(
                name=_text(item.get("name")),
                price_cents=to_cents(item.get("price")),
            )
        )
    return items

"""Tests for receipt fingerprints."""

from datetime import date

import pytest

from niche.rewards.fingerprint import compute_fingerprint, normalize_retailer


class TestNormalizeRetailer:
    def test_lowercases_and_strips_punctuation(self):
        assert normalize_retailer("PSO Petrol - Gulberg!") == "psopetrolgulberg"

    def test_non_ascii_is_dropped(self):
        assert normalize_retailer("Café Déjà") == "cafdj"

    def test_empty(self):
        assert normalize_retailer("") == ""


class TestComputeFingerprint:
    def test_deterministic(self):
        a = compute_fingerprint("Imtiaz", "2024-03-01", 20000, "INV-7")
        b = compute_fingerprint("Imtiaz", "2024-03-01", 20000, "INV-7")
        assert a == b

    def test_date_object_and_string_agree(self):
        assert compute_fingerprint("Imtiaz", date(2024, 3, 1), 100) == compute_fingerprint(
            "Imtiaz", "2024-03-01", 100
        )

    def test_retailer_spelling_variants_match(self):
        assert compute_fingerprint("PSO Petrol", "2024-03-01", 5000) == compute_fingerprint(
            "pso-petrol", "2024-03-01", 5000
        )

    def test_three_part_form(self):
        assert compute_fingerprint("Imtiaz", "2024-03-01", 8945) == "r3|imtiaz|2024-03-01|8945"

    def test_four_part_form(self):
        assert (
            compute_fingerprint("Imtiaz", "2024-03-01", 8945, "A12")
            == "r4|imtiaz|2024-03-01|8945|A12"
        )

    def test_blank_invoice_is_absent(self):
        assert compute_fingerprint("Imtiaz", "2024-03-01", 1, "  ") == compute_fingerprint(
            "Imtiaz", "2024-03-01", 1
        )

    @pytest.mark.parametrize(
        "changed",
        [
            ("Metro", "2024-03-01", 8945, None),
            ("Imtiaz", "2024-03-02", 8945, None),
            ("Imtiaz", "2024-03-01", 8946, None),
            ("Imtiaz", "2024-03-01", 8945, "INV-1"),
        ],
    )
    def test_any_single_change_changes_key(self, changed):
        base = compute_fingerprint("Imtiaz", "2024-03-01", 8945, None)
        assert compute_fingerprint(*changed) != base

    def test_forms_cannot_collide(self):
        """An invoice number shaped like another key's tail stays distinct."""
        without = compute_fingerprint("ab", "2024-03-01", 100)
        with_invoice = compute_fingerprint("a", "b|2024-03-01", 100, "x")
        assert without.startswith("r3|")
        assert with_invoice.startswith("r4|")
        assert without != with_invoice

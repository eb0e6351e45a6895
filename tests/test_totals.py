from __future__ import annotations

import pytest

from core.models.document import LineItem
from core.services.totals import (
    DocumentTotals,
    amount_to_words,
    compute_totals,
    format_currency,
    integer_to_words,
    round2,
)


def _line(qty, price):
    return LineItem(product_id=1, name="Ramette A4", quantity=qty, price_ht=price)


# ---------- Totaux ---------- #

def test_empty_items_give_zero_totals():
    assert compute_totals([], 20) == DocumentTotals(total_ht=0, total_vat=0, total_ttc=0)


def test_simple_invoice_totals():
    t = compute_totals([_line(2, 100)], 20)
    assert (t.total_ht, t.total_vat, t.total_ttc) == (200, 40, 240)


def test_zero_vat_rate():
    t = compute_totals([_line(3, 12.5), _line(1, 7)], 0)
    assert t.total_vat == 0
    assert t.total_ttc == t.total_ht == pytest.approx(44.5)


def test_vat_rounded_to_cent():
    t = compute_totals([_line(3, 19.99)], 20)
    assert t.total_ht == pytest.approx(59.97)
    assert t.total_vat == 11.99
    assert t.total_ttc == pytest.approx(71.96)


def test_recomputation_does_not_drift():
    items = [_line(7, 0.1), _line(3, 33.33), _line(11, 1.07)]
    first = compute_totals(items, 20)
    for _ in range(50):
        again = compute_totals(items, 20)
        assert again == first
    shown = float(format_currency(first.total_ttc, "").replace(" ", "").replace(",", "."))
    assert abs(shown - first.total_ttc) <= 0.01


def test_round2_is_half_up():
    assert round2(2.675) == 2.68
    assert round2(1.005) == 1.01
    assert round2(-1.005) == -1.01


@pytest.mark.parametrize("amount, expected", [
    (1234.5, "1 234,50 DH"),
    (0, "0,00 DH"),
    (1000000, "1 000 000,00 DH"),
    (12.345, "12,35 DH"),
])
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected


# ---------- Montant en lettres ---------- #

@pytest.mark.parametrize("amount, expected", [
    (0, "Zéro dirhams pile"),
    (1, "Un dirhams pile"),
    (17, "Dix-sept dirhams pile"),
    (21, "Vingt et un dirhams pile"),
    (61, "Soixante et un dirhams pile"),
    (71, "Soixante-onze dirhams pile"),
    (77, "Soixante-dix-sept dirhams pile"),
    (80, "Quatre-vingts dirhams pile"),
    (81, "Quatre-vingt-un dirhams pile"),
    (91, "Quatre-vingt-onze dirhams pile"),
    (99, "Quatre-vingt-dix-neuf dirhams pile"),
    (100, "Cent dirhams pile"),
    (101, "Cent un dirhams pile"),
    (200, "Deux cents dirhams pile"),
    (250, "Deux cent cinquante dirhams pile"),
    (1000, "Mille dirhams pile"),
    (2000, "Deux mille dirhams pile"),
    (80000, "Quatre-vingt mille dirhams pile"),
    (200000, "Deux cent mille dirhams pile"),
    (999999, "Neuf cent quatre-vingt-dix-neuf mille neuf cent quatre-vingt-dix-neuf dirhams pile"),
])
def test_amount_to_words_integers(amount, expected):
    assert amount_to_words(amount) == expected


def test_amount_with_centimes():
    assert amount_to_words(200.50) == "Deux cents dirhams et cinquante centimes"
    assert amount_to_words(1234.50) == "Mille deux cent trente-quatre dirhams et cinquante centimes"
    assert amount_to_words(0.05) == "Zéro dirhams et cinq centimes"


def test_amount_rounded_before_splitting():
    assert amount_to_words(1.995) == "Deux dirhams pile"
    assert amount_to_words(10.999) == "Onze dirhams pile"


def test_large_and_negative_amounts_fall_back_to_digits():
    assert amount_to_words(1_000_000) == "1000000 dirhams pile"
    assert integer_to_words(-5) == "-5"


def test_negative_amount_keeps_centimes():
    assert amount_to_words(-5.50) == "-5 dirhams et cinquante centimes"
    assert amount_to_words(-0.25) == "-0 dirhams et vingt-cinq centimes"
    assert amount_to_words(-12) == "-12 dirhams pile"


def test_currency_word_is_configurable():
    assert amount_to_words(3, currency="euros") == "Trois euros pile"

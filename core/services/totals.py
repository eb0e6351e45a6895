"""
Totaux HT / TVA / TTC et montant en toutes lettres (mention légale des factures).
"""
from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from pydantic import BaseModel

from core.models.document import LineItem

CENT = Decimal("0.01")

_UNITS = ["", "un", "deux", "trois", "quatre", "cinq", "six", "sept", "huit", "neuf"]
_TEENS = ["dix", "onze", "douze", "treize", "quatorze", "quinze", "seize", "dix-sept", "dix-huit", "dix-neuf"]
# 70 et 90 se construisent sur 60 et 80 + "dix..dix-neuf"
_TENS = ["", "dix", "vingt", "trente", "quarante", "cinquante", "soixante", "soixante", "quatre-vingt", "quatre-vingt"]

WORDS_LIMIT = 1_000_000


class DocumentTotals(BaseModel):
    total_ht: float = 0.0
    total_vat: float = 0.0
    total_ttc: float = 0.0


# ---------- Arrondis / formats ---------- #

def _to_decimal(value: float) -> Decimal:
    # str() évite d'hériter de l'erreur de représentation binaire (1.995 -> 1.99499...)
    return Decimal(str(value))


def round2(value: float) -> float:
    """Arrondi commercial (demi vers le haut) à 2 décimales."""
    return float(_to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def format_currency(amount: float, currency: str = "DH") -> str:
    """1234.5 -> '1 234,50 DH'"""
    d = _to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    txt = f"{d:,.2f}".replace(",", " ").replace(".", ",")
    return f"{txt} {currency}" if currency else txt


# ---------- Totaux ---------- #

def compute_totals(items: Iterable[LineItem], vat_rate_percent: float) -> DocumentTotals:
    """
    total_ht : somme exacte (fsum) des quantité x prix HT, non arrondie.
    total_vat : arrondie au centime ; total_ttc = total_ht + total_vat.
    Pas de validation des quantités/prix ici : c'est le rôle de l'appelant.
    """
    total_ht = math.fsum(it.quantity * it.price_ht for it in items)
    if total_ht == 0:
        return DocumentTotals()
    total_vat = round2(total_ht * vat_rate_percent / 100)
    return DocumentTotals(total_ht=total_ht, total_vat=total_vat, total_ttc=total_ht + total_vat)


# ---------- Montant en lettres ---------- #

def _below_100(n: int) -> str:
    if n < 10:
        return _UNITS[n]
    if n < 20:
        return _TEENS[n - 10]
    ten, unit = divmod(n, 10)
    if ten in (7, 9):
        return f"{_TENS[ten]}-{_TEENS[unit]}"
    if ten == 8:
        return "quatre-vingts" if unit == 0 else f"quatre-vingt-{_UNITS[unit]}"
    if unit == 0:
        return _TENS[ten]
    if unit == 1:
        return f"{_TENS[ten]} et un"
    return f"{_TENS[ten]}-{_UNITS[unit]}"


def _below_1000(n: int) -> str:
    hundred, rest = divmod(n, 100)
    if hundred == 0:
        return _below_100(rest)
    if hundred == 1:
        head = "cent"
    else:
        head = f"{_UNITS[hundred]} cent" + ("s" if rest == 0 else "")
    return head if rest == 0 else f"{head} {_below_100(rest)}"


def integer_to_words(n: int) -> str:
    """Entier en lettres ; au-delà du million (ou négatif) on garde les chiffres."""
    if n == 0:
        return "zéro"
    if n < 0 or n >= WORDS_LIMIT:
        return str(n)
    thousands, rest = divmod(n, 1000)
    if thousands == 0:
        return _below_1000(rest)
    if thousands == 1:
        head = "mille"
    else:
        group = _below_1000(thousands)
        # "cents" / "quatre-vingts" restent invariables devant "mille"
        if group.endswith(("cents", "vingts")):
            group = group[:-1]
        head = f"{group} mille"
    return head if rest == 0 else f"{head} {_below_1000(rest)}"


def amount_to_words(amount: float, currency: str = "dirhams") -> str:
    """
    1234.50 -> 'Mille deux cent trente-quatre dirhams et cinquante centimes'
    0       -> 'Zéro dirhams pile'
    """
    d = _to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    magnitude = abs(d)
    units = int(magnitude)
    cents = int((magnitude - units) * 100)

    # montant négatif (avoir) : partie entière en chiffres, signe conservé
    words = f"-{units}" if d < 0 else integer_to_words(units)
    result = f"{words} {currency}"
    if cents > 0:
        result += f" et {_below_100(cents)} centimes"
    else:
        result += " pile"
    return result[:1].upper() + result[1:]

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from invoice_pdf.data.models import Adjustments, LineItem


@dataclass(frozen=True)
class Totals:
    subtotal: float
    discount: float
    taxable_amount: float
    tax_amount: float
    total: float
    amount_paid: float
    balance_due: float


def clamp_non_negative(value: object) -> float:
    """Coerce to float; NaN, infinities, negatives and non-numbers become 0.0."""
    try:
        v = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(v) or v < 0:
        return 0.0
    return v


def line_amount(item: LineItem) -> float:
    # Finite factors can still overflow to inf
    return clamp_non_negative(clamp_non_negative(item.quantity) * clamp_non_negative(item.unit_price))


def calc_totals(items: Iterable[LineItem], adjustments: Adjustments) -> Totals:
    """Compute invoice totals.

    Malformed numbers are clamped to zero rather than reported, so the result
    is always finite, non-negative and ``total == taxable_amount + tax_amount``.
    """
    subtotal = 0.0
    for item in items:
        subtotal = clamp_non_negative(subtotal + line_amount(item))

    discount = clamp_non_negative(adjustments.discount_amount)
    taxable_amount = max(0.0, subtotal - discount)

    rate = clamp_non_negative(adjustments.tax_rate_percent) if adjustments.tax_enabled else 0.0
    tax_amount = clamp_non_negative(taxable_amount * (rate / 100))

    total = taxable_amount + tax_amount
    if not math.isfinite(total):
        tax_amount, total = 0.0, taxable_amount

    amount_paid = clamp_non_negative(adjustments.amount_paid)
    balance_due = max(0.0, total - amount_paid)

    return Totals(
        subtotal=subtotal,
        discount=discount,
        taxable_amount=taxable_amount,
        tax_amount=tax_amount,
        total=total,
        amount_paid=amount_paid,
        balance_due=balance_due,
    )

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_EVEN, InvalidOperation
from typing import Optional


# Display symbols for the supported invoice currencies
CURRENCY_SYMBOLS = {
	"EUR": "€",
	"AUD": "A$",
	"USD": "$",
	"GBP": "£",
	"NZD": "NZ$",
	"CAD": "CA$",
	"SGD": "S$",
}


def to_decimal(x: object) -> Decimal:
	"""Best-effort conversion to Decimal via str to avoid binary float artifacts."""
	try:
		d = Decimal(str(x))
	except (InvalidOperation, ValueError, TypeError):
		return Decimal("0")
	# NaN/Infinity never reach a printed amount
	return d if d.is_finite() else Decimal("0")


def round_money(x: float | Decimal) -> float:
	"""Round to 2 decimals using banker's rounding (round-half-to-even) and return float."""
	return float(round_money_dec(x))


def round_money_dec(x: float | Decimal) -> Decimal:
	"""Round to 2 decimals and return Decimal for high-precision internal math."""
	d = to_decimal(x)
	return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN)


def currency_symbol(code: Optional[str]) -> str:
	if not code:
		return ""
	return CURRENCY_SYMBOLS.get(code.upper(), f"{code.upper()} ")


def fmt_money(x: float | Decimal, currency: Optional[str] = None, width: Optional[int] = None) -> str:
	"""
	Format a monetary value with two decimals and thousands separators.

	The currency symbol (if a code is given) goes after the sign: -A$1,234.50.
	If width is provided, return a right-aligned string.
	"""
	q = round_money_dec(x)
	sign = "-" if q < 0 else ""
	s = f"{sign}{currency_symbol(currency)}{abs(q):,.2f}"
	return s.rjust(width) if isinstance(width, int) and width > 0 else s


def fmt_qty(qty: object) -> str:
	"""Format quantity with up to 3 decimals, no trailing zeros."""
	q = to_decimal(qty).quantize(Decimal("0.001"), rounding=ROUND_HALF_EVEN)
	s = f"{q:.3f}".rstrip("0").rstrip(".")
	return s if s and s != "-0" else "0"

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Tuple


SUPPORTED_CURRENCIES = ("EUR", "AUD", "USD", "GBP", "NZD", "CAD", "SGD")


def _known(cls, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
	# Keep only keys the dataclass declares; unknown keys are ignored
	if not isinstance(data, dict):
		return {}
	names = {f.name for f in fields(cls)}
	return {k: v for k, v in data.items() if k in names}


@dataclass(frozen=True)
class LineItem:
	description: str = ""
	quantity: float = 0.0
	unit_price: float = 0.0

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "LineItem":
		return cls(**_known(cls, data))


@dataclass(frozen=True)
class Adjustments:
	discount_amount: float = 0.0
	tax_enabled: bool = False
	tax_rate_percent: float = 10.0
	amount_paid: float = 0.0

	@classmethod
	def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Adjustments":
		return cls(**_known(cls, data))


@dataclass(frozen=True)
class Party:
	name: str = ""
	company_name: str = ""
	address_lines: Tuple[str, ...] = ()
	phone: str = ""
	email: str = ""

	@classmethod
	def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Party":
		kw = _known(cls, data)
		lines = kw.get("address_lines", ())
		if isinstance(lines, str):
			lines = lines.splitlines()
		kw["address_lines"] = tuple(str(ln) for ln in lines or ())
		return cls(**kw)

	def lines(self) -> Tuple[str, ...]:
		"""Non-empty display lines, name first."""
		out = [self.name, self.company_name, *self.address_lines, self.phone, self.email]
		return tuple(s for s in (str(x).strip() for x in out) if s)


@dataclass(frozen=True)
class InvoiceMeta:
	number: str = ""
	invoice_date: str = ""
	due_date: str = ""
	payment_terms: str = ""
	# Empty means "use Settings.currency"
	currency: str = ""

	@classmethod
	def from_dict(cls, data: Optional[Dict[str, Any]]) -> "InvoiceMeta":
		return cls(**_known(cls, data))


@dataclass(frozen=True)
class BankDetails:
	bank_name: str = ""
	account_name: str = ""
	account_number: str = ""
	# BSB / Sort Code / Routing Number
	bsb_sort_code: str = ""
	swift_bic: str = ""
	iban: str = ""
	additional_details: str = ""

	@classmethod
	def from_dict(cls, data: Optional[Dict[str, Any]]) -> "BankDetails":
		return cls(**_known(cls, data))

	def is_empty(self) -> bool:
		return not any(str(getattr(self, f.name) or "").strip() for f in fields(self))


@dataclass(frozen=True)
class Invoice:
	"""Snapshot of one invoice record, captured for a single render pass.

	Only ``items`` and ``adjustments`` drive the layout; the remaining fields
	are printed in the header and footer blocks.
	"""

	meta: InvoiceMeta = field(default_factory=InvoiceMeta)
	seller: Party = field(default_factory=Party)
	bill_to: Party = field(default_factory=Party)
	ship_to: Party = field(default_factory=Party)
	items: Tuple[LineItem, ...] = ()
	adjustments: Adjustments = field(default_factory=Adjustments)
	bank: BankDetails = field(default_factory=BankDetails)
	notes: str = ""
	terms: str = ""
	payment_instructions: str = ""
	signatory_name: str = ""

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Invoice":
		"""Build a snapshot from plain dicts (snake_case keys, unknown keys ignored).

		Data shape (all keys optional):
		{
		  "meta": {"number": str, "invoice_date": str, "due_date": str,
		           "payment_terms": str, "currency": str},
		  "seller" / "bill_to" / "ship_to": {"name": str, "company_name": str,
		           "address_lines": [str] | str, "phone": str, "email": str},
		  "items": [{"description": str, "quantity": float, "unit_price": float}, ...],
		  "adjustments": {"discount_amount": float, "tax_enabled": bool,
		                  "tax_rate_percent": float, "amount_paid": float},
		  "bank": {...}, "notes": str, "terms": str,
		  "payment_instructions": str, "signatory_name": str
		}
		"""
		kw = _known(cls, data)
		return cls(
			meta=InvoiceMeta.from_dict(kw.get("meta")),
			seller=Party.from_dict(kw.get("seller")),
			bill_to=Party.from_dict(kw.get("bill_to")),
			ship_to=Party.from_dict(kw.get("ship_to")),
			items=tuple(
				it if isinstance(it, LineItem) else LineItem.from_dict(it)
				for it in (kw.get("items") or ())
			),
			adjustments=Adjustments.from_dict(kw.get("adjustments")),
			bank=BankDetails.from_dict(kw.get("bank")),
			notes=str(kw.get("notes") or ""),
			terms=str(kw.get("terms") or ""),
			payment_instructions=str(kw.get("payment_instructions") or ""),
			signatory_name=str(kw.get("signatory_name") or ""),
		)

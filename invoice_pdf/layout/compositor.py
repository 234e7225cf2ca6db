from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from invoice_pdf.core.currency import fmt_money, fmt_qty
from invoice_pdf.data.models import Invoice
from invoice_pdf.layout.geometry import PageGeometry
from invoice_pdf.layout.paginator import RowGroup, paginate
from invoice_pdf.layout.totals import Totals, calc_totals, clamp_non_negative, line_amount


# English defaults; a translation layer passes its own mapping
DEFAULT_LABELS: Dict[str, str] = {
    "title": "INVOICE",
    "number": "No.",
    "description": "Description",
    "quantity": "Qty",
    "unit_price": "Unit price",
    "amount": "Amount",
    "invoice_number": "Invoice No:",
    "invoice_date": "Date:",
    "due_date": "Due date:",
    "payment_terms": "Terms:",
    "bill_to": "BILL TO",
    "ship_to": "SHIP TO",
    "page": "Page {page} of {count}",
    "subtotal": "Subtotal",
    "discount": "Discount",
    "tax": "Tax ({rate}%)",
    "total": "Total",
    "amount_paid": "Amount paid",
    "balance_due": "Balance due",
    "payment_details": "Payment details",
    "bank_name": "Bank",
    "account_name": "Account name",
    "account_number": "Account number",
    "bsb_sort_code": "BSB / Sort code",
    "swift_bic": "SWIFT / BIC",
    "iban": "IBAN",
    "notes": "Notes",
    "terms": "Terms & conditions",
    "signatory": "Authorised by: {name}",
}

# Column order of every table row
COLUMNS = ("number", "description", "quantity", "unit_price", "amount")


@dataclass(frozen=True)
class HeaderBlock:
    """Text of the band above the table.

    ``full`` is True on the first page only; continuation pages repeat just
    the title and the meta lines (number and page counter).
    """

    full: bool
    title: str
    seller: Tuple[str, ...] = ()
    meta: Tuple[Tuple[str, str], ...] = ()
    bill_to: Tuple[str, ...] = ()
    ship_to: Tuple[str, ...] = ()
    bill_to_label: str = ""
    ship_to_label: str = ""


@dataclass(frozen=True)
class RowCells:
    number: str
    description: str
    quantity: str
    unit_price: str
    amount: str
    top: float

    def values(self) -> Tuple[str, str, str, str, str]:
        return (self.number, self.description, self.quantity, self.unit_price, self.amount)


@dataclass(frozen=True)
class SummaryBlock:
    top: float
    # (label, value) pairs in fixed order: subtotal, discount, tax, total, paid, balance
    lines: Tuple[Tuple[str, str], ...]
    # Free-text footer paragraphs: payment details, instructions, notes, terms, signatory
    footer: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class Page:
    index: int
    page_count: int
    rows: RowGroup
    includes_summary: bool
    header: HeaderBlock
    table_header: Tuple[str, ...]
    cells: Tuple[RowCells, ...]
    table_top: float
    content_bottom: float
    summary: Optional[SummaryBlock] = None


def _labels(overrides: Optional[Mapping[str, str]]) -> Dict[str, str]:
    merged = dict(DEFAULT_LABELS)
    if overrides:
        merged.update({k: v for k, v in overrides.items() if k in DEFAULT_LABELS})
    return merged


def _fmt_rate(rate: float) -> str:
    return f"{rate:.2f}".rstrip("0").rstrip(".")


def _summary_lines(totals: Totals, invoice: Invoice, labels: Dict[str, str]) -> Tuple[Tuple[str, str], ...]:
    cur = invoice.meta.currency
    adj = invoice.adjustments
    rate = clamp_non_negative(adj.tax_rate_percent) if adj.tax_enabled else 0.0
    return (
        (labels["subtotal"], fmt_money(totals.subtotal, cur)),
        (labels["discount"], fmt_money(-totals.discount if totals.discount else 0, cur)),
        (labels["tax"].format(rate=_fmt_rate(rate)), fmt_money(totals.tax_amount, cur)),
        (labels["total"], fmt_money(totals.total, cur)),
        (labels["amount_paid"], fmt_money(totals.amount_paid, cur)),
        (labels["balance_due"], fmt_money(totals.balance_due, cur)),
    )


def _footer(invoice: Invoice, labels: Dict[str, str]) -> Tuple[Tuple[str, str], ...]:
    out: List[Tuple[str, str]] = []
    bank = invoice.bank
    if not bank.is_empty():
        rows = [
            (labels["bank_name"], bank.bank_name),
            (labels["account_name"], bank.account_name),
            (labels["account_number"], bank.account_number),
            (labels["bsb_sort_code"], bank.bsb_sort_code),
            (labels["swift_bic"], bank.swift_bic),
            (labels["iban"], bank.iban),
        ]
        lines = [f"{k}: {v.strip()}" for k, v in rows if v and v.strip()]
        if bank.additional_details.strip():
            lines.append(bank.additional_details.strip())
        out.append((labels["payment_details"], "\n".join(lines)))
    if invoice.payment_instructions.strip():
        if out:
            title, body = out[0]
            out[0] = (title, body + "\n" + invoice.payment_instructions.strip())
        else:
            out.append((labels["payment_details"], invoice.payment_instructions.strip()))
    if invoice.notes.strip():
        out.append((labels["notes"], invoice.notes.strip()))
    if invoice.terms.strip():
        out.append((labels["terms"], invoice.terms.strip()))
    if invoice.signatory_name.strip():
        out.append(("", labels["signatory"].format(name=invoice.signatory_name.strip())))
    return tuple(out)


def _header(index: int, page_count: int, invoice: Invoice, labels: Dict[str, str]) -> HeaderBlock:
    meta = invoice.meta
    counter = labels["page"].format(page=index + 1, count=page_count)
    if index > 0:
        return HeaderBlock(
            full=False,
            title=labels["title"],
            meta=((labels["invoice_number"], meta.number), ("", counter)),
        )
    pairs = [
        (labels["invoice_number"], meta.number),
        (labels["invoice_date"], meta.invoice_date),
        (labels["due_date"], meta.due_date),
        (labels["payment_terms"], meta.payment_terms),
    ]
    if page_count > 1:
        pairs.append(("", counter))
    return HeaderBlock(
        full=True,
        title=labels["title"],
        seller=invoice.seller.lines(),
        meta=tuple((k, v) for k, v in pairs if str(v).strip()),
        bill_to=invoice.bill_to.lines(),
        ship_to=invoice.ship_to.lines(),
        bill_to_label=labels["bill_to"],
        ship_to_label=labels["ship_to"],
    )


def _cells(group: RowGroup, rows_top: float, row_height: float, currency: str) -> Tuple[RowCells, ...]:
    out = []
    for offset, item in enumerate(group.rows):
        out.append(
            RowCells(
                number=f"{group.start + offset + 1}.",
                description=str(item.description or ""),
                quantity=fmt_qty(clamp_non_negative(item.quantity)),
                unit_price=fmt_money(clamp_non_negative(item.unit_price), currency),
                amount=fmt_money(line_amount(item), currency),
                top=rows_top + offset * row_height,
            )
        )
    return tuple(out)


def compose(
    row_groups: Sequence[RowGroup],
    totals: Totals,
    geometry: PageGeometry,
    *,
    invoice: Optional[Invoice] = None,
    labels: Optional[Mapping[str, str]] = None,
) -> List[Page]:
    """Turn row groups into page snapshots.

    Every page gets the table header labels; only the page of the last group
    gets the summary block, placed at
    ``max(content_bottom + summary_gap, page_height - reserved_footer_height)``
    so it never sits above the last row.
    """
    invoice = invoice or Invoice()
    lbl = _labels(labels)
    table_header = tuple(lbl[c] for c in COLUMNS)
    currency = invoice.meta.currency

    table_top = geometry.margin + geometry.header_height - geometry.table_header_height
    rows_top = geometry.margin + geometry.header_height
    page_count = len(row_groups)

    pages: List[Page] = []
    for index, group in enumerate(row_groups):
        content_bottom = rows_top + len(group) * geometry.row_height
        summary = None
        if group.is_last_group:
            top = max(content_bottom + geometry.summary_gap, geometry.page_height - geometry.reserved_footer_height)
            summary = SummaryBlock(
                top=top,
                lines=_summary_lines(totals, invoice, lbl),
                footer=_footer(invoice, lbl),
            )
        pages.append(
            Page(
                index=index,
                page_count=page_count,
                rows=group,
                includes_summary=group.is_last_group,
                header=_header(index, page_count, invoice, lbl),
                table_header=table_header,
                cells=_cells(group, rows_top, geometry.row_height, currency),
                table_top=table_top,
                content_bottom=content_bottom,
                summary=summary,
            )
        )
    return pages


def layout_invoice(
    invoice: Invoice,
    geometry: PageGeometry,
    labels: Optional[Mapping[str, str]] = None,
    *,
    reserve_summary_room: bool = False,
) -> List[Page]:
    """Totals, pagination and composition for one invoice snapshot."""
    totals = calc_totals(invoice.items, invoice.adjustments)
    groups = paginate(invoice.items, geometry, reserve_summary_room=reserve_summary_room)
    return compose(groups, totals, geometry, invoice=invoice, labels=labels)

from __future__ import annotations

import asyncio
import inspect
import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from invoice_pdf.core.numbering import next_invoice_number
from invoice_pdf.core.paths import default_output_dir
from invoice_pdf.core.settings import Settings
from invoice_pdf.data.models import Invoice
from invoice_pdf.layout.compositor import layout_invoice
from invoice_pdf.layout.geometry import PageGeometry, geometry_for
from invoice_pdf.pdf.pdf_draw import DocumentWriter, ReportLabWriter

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9]")


def invoice_filename(number: str) -> str:
    """'INV-2026/01 #3' -> 'INV_2026_01__3.pdf'; empty numbers give 'invoice.pdf'."""
    stem = _UNSAFE.sub("_", (number or "").strip())
    return f"{stem}.pdf" if stem else "invoice.pdf"


def _snapshot(
    invoice: Union[Invoice, Mapping[str, Any]],
    settings: Settings,
    db_session: Any = None,
) -> Invoice:
    inv = invoice if isinstance(invoice, Invoice) else Invoice.from_dict(dict(invoice))
    meta = inv.meta
    if not meta.currency:
        meta = replace(meta, currency=settings.currency)
    if not meta.number.strip() and db_session is not None:
        meta = replace(meta, number=next_invoice_number(db_session, prefix=settings.invoice_prefix))
    return inv if meta is inv.meta else replace(inv, meta=meta)


async def export_invoice(
    invoice: Union[Invoice, Mapping[str, Any]],
    out_dir: Optional[Union[str, Path]] = None,
    *,
    writer: Optional[DocumentWriter] = None,
    settings: Optional[Settings] = None,
    geometry: Optional[PageGeometry] = None,
    labels: Optional[Mapping[str, str]] = None,
    out_path: Optional[Union[str, Path]] = None,
    db_session: Any = None,
) -> Path:
    """Lay out the invoice and hand its pages to the document writer.

    Layout runs synchronously on a private snapshot of the input. The writer
    call is the only await; a blocking writer runs in a worker thread. Any
    writer exception reaches the caller as-is and nothing is retried.

    An invoice without a number gets the next daily number from ``db_session``
    (prefixed with ``settings.invoice_prefix``) when a session is given.
    """
    settings = settings or Settings()
    inv = _snapshot(invoice, settings, db_session)
    geometry = geometry or geometry_for(settings.paper_format)
    writer = writer or ReportLabWriter(settings)

    pages = layout_invoice(
        inv,
        geometry,
        labels=labels,
        reserve_summary_room=getattr(writer, "reserves_summary_room", False),
    )

    if out_path is None:
        root = Path(out_dir or settings.output_dir or default_output_dir())
        out_path = root / invoice_filename(inv.meta.number)
    target = Path(out_path)

    title = f"Invoice {inv.meta.number}".strip()
    author = inv.seller.company_name or inv.seller.name
    logger.info("Exporting invoice %s: %s item(s), %s page(s) -> %s", inv.meta.number, len(inv.items), len(pages), target)

    try:
        if inspect.iscoroutinefunction(writer.write):
            result = await writer.write(pages, geometry, target, title=title, author=author)
        else:
            result = await asyncio.to_thread(writer.write, pages, geometry, target, title=title, author=author)
    except Exception:
        logger.exception("Document writer failed for %s", target)
        raise

    written = Path(result) if result is not None else target
    logger.info("Invoice exported: %s", written)
    return written


def build_invoice_pdf(
    out_path: Union[str, Path],
    data: Union[Invoice, Dict[str, Any]],
    settings: Optional[Settings] = None,
) -> Path:
    """Synchronous convenience: draw the invoice PDF at ``out_path`` with ReportLab.

    Must not be called from inside a running event loop; await
    ``export_invoice`` there instead.
    """
    return asyncio.run(export_invoice(data, settings=settings, out_path=out_path))

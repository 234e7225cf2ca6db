from __future__ import annotations

import asyncio
import math
import re
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pytest
from pypdf import PdfReader
from sqlalchemy import create_engine

from invoice_pdf.core.errors import InvalidGeometryError
from invoice_pdf.core.numbering import peek_next_invoice_number
from invoice_pdf.core.settings import Settings
from invoice_pdf.data.models import Invoice
from invoice_pdf.export import build_invoice_pdf, export_invoice, invoice_filename
from invoice_pdf.layout.compositor import Page, layout_invoice
from invoice_pdf.layout.geometry import PageGeometry, geometry_for


def _a4_size_points() -> tuple[float, float]:
    # ReportLab A4 in points
    return (595.2755905511812, 841.8897637795277)


def _data(n_items: int = 3) -> Dict[str, Any]:
    base = [
        {"description": "Item A", "quantity": 2, "unit_price": 150.0},
        {"description": "Item B", "quantity": 1, "unit_price": 49.99},
        {"description": "Item C", "quantity": 3, "unit_price": 20.0},
    ]
    items = base if n_items == 3 else [
        {"description": f"Line item number {i} with a fairly long description that needs wrapping onto a second line", "quantity": 1, "unit_price": 10.0}
        for i in range(n_items)
    ]
    return {
        "meta": {"number": "INV-20260105-001", "invoice_date": "05/01/2026", "due_date": "19/01/2026", "currency": "AUD"},
        "seller": {"name": "Acme Pty Ltd", "address_lines": "1 Main St\nSydney NSW 2000", "email": "billing@acme.test"},
        "bill_to": {"name": "Test Customer", "phone": "1234567890", "address_lines": ["Line 1", "Line 2"]},
        "items": items,
        "adjustments": {"tax_enabled": False},
        "bank": {"bank_name": "Bank of Test", "account_number": "12345678"},
        "notes": "Thank you for your business.",
    }


def test_invoice_pdf_single_page(tmp_path: Path) -> None:
    out_pdf = tmp_path / "drawn.pdf"
    result = build_invoice_pdf(out_pdf, _data())
    assert result == out_pdf

    reader = PdfReader(str(out_pdf))
    assert len(reader.pages) == 1

    page = reader.pages[0]
    box = page.mediabox
    width = float(box.right - box.left)
    height = float(box.top - box.bottom)
    a4w, a4h = _a4_size_points()
    assert math.isclose(width, a4w, rel_tol=0, abs_tol=1.0)
    assert math.isclose(height, a4h, rel_tol=0, abs_tol=1.0)

    text = page.extract_text() or ""
    assert "INV-20260105-001" in text
    assert "Qty" in text and "Unit price" in text and "Amount" in text
    assert "Balance due" in text
    # 300.00 + 49.99 + 60.00, no tax
    assert re.search(r"Total\s*A\$409\.99", text) is not None
    assert reader.metadata is not None and reader.metadata.title == "Invoice INV-20260105-001"


def test_invoice_pdf_multi_page(tmp_path: Path) -> None:
    data = _data(60)
    expected = layout_invoice(Invoice.from_dict(data), geometry_for("A4"), reserve_summary_room=True)
    # A4: 14 rows on page 1, 23 per continuation page, last row carried to the summary page
    assert [len(p.cells) for p in expected] == [14, 23, 22, 1]

    out_pdf = build_invoice_pdf(tmp_path / "multi.pdf", data)
    reader = PdfReader(str(out_pdf))
    assert len(reader.pages) == len(expected)

    texts = [p.extract_text() or "" for p in reader.pages]
    for text in texts:
        assert "Unit price" in text
        assert "Description" in text
    assert ["Balance due" in t for t in texts] == [False, False, False, True]
    assert "Page 2 of 4" in texts[1]
    assert "60." in texts[-1]


def test_export_names_file_after_invoice_number(tmp_path: Path) -> None:
    out = asyncio.run(export_invoice(_data(), tmp_path))
    assert out == tmp_path / "INV_20260105_001.pdf"
    assert out.exists()


def test_export_uses_settings_paper_format(tmp_path: Path) -> None:
    out = asyncio.run(export_invoice(_data(), tmp_path, settings=Settings(paper_format="LETTER")))
    box = PdfReader(str(out)).pages[0].mediabox
    assert math.isclose(float(box.top - box.bottom), 792.0, abs_tol=1.0)


class _RecordingWriter:
    def __init__(self) -> None:
        self.calls: List[Sequence[Page]] = []

    async def write(self, pages: Sequence[Page], geometry: PageGeometry, out_path: Path, *, title: str = "", author: str = "") -> Path:
        await asyncio.sleep(0)
        self.calls.append(pages)
        return out_path


class _FailingWriter:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc
        self.called = False

    def write(self, pages: Sequence[Page], geometry: PageGeometry, out_path: Path, *, title: str = "", author: str = "") -> Path:
        self.called = True
        raise self.exc


def test_async_writer_is_awaited(tmp_path: Path) -> None:
    writer = _RecordingWriter()
    out = asyncio.run(export_invoice(_data(), tmp_path, writer=writer))
    assert out.name == "INV_20260105_001.pdf"
    assert len(writer.calls) == 1
    assert writer.calls[0][-1].includes_summary


def test_concurrent_exports_are_independent(tmp_path: Path) -> None:
    writer = _RecordingWriter()
    small, large = _data(), _data(60)
    large["meta"]["number"] = "INV-20260105-002"

    async def run_both():
        return await asyncio.gather(
            export_invoice(small, tmp_path, writer=writer),
            export_invoice(large, tmp_path, writer=writer),
        )

    first, second = asyncio.run(run_both())
    assert first != second
    page_counts = sorted(len(pages) for pages in writer.calls)
    assert page_counts == [1, 3]


def test_writer_failure_reaches_caller_unchanged(tmp_path: Path) -> None:
    err = OSError("disk full")
    writer = _FailingWriter(err)
    with pytest.raises(OSError) as excinfo:
        asyncio.run(export_invoice(_data(), tmp_path, writer=writer))
    assert excinfo.value is err
    assert writer.called


def test_invalid_geometry_aborts_before_writing(tmp_path: Path) -> None:
    writer = _FailingWriter(RuntimeError("should not be called"))
    tiny = PageGeometry(page_width=200, page_height=200, margin=20, row_height=10, header_height=145, reserved_footer_height=10)
    with pytest.raises(InvalidGeometryError):
        asyncio.run(export_invoice(_data(), tmp_path, writer=writer, geometry=tiny))
    assert not writer.called


@pytest.mark.parametrize(
    "number, expected",
    [
        ("INV-20260105-001", "INV_20260105_001.pdf"),
        ("INV-2026/01 #3", "INV_2026_01__3.pdf"),
        ("ABC123", "ABC123.pdf"),
        ("", "invoice.pdf"),
        ("   ", "invoice.pdf"),
    ],
)
def test_invoice_filename(number: str, expected: str) -> None:
    assert invoice_filename(number) == expected


def test_default_output_dir_can_be_overridden(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INVOICE_PDF_OUTPUT_DIR", str(tmp_path / "exports"))
    writer = _RecordingWriter()
    out = asyncio.run(export_invoice(_data(), writer=writer))
    assert out == tmp_path / "exports" / "INV_20260105_001.pdf"


def test_writers_without_reserved_summary_room_get_plain_grouping(tmp_path: Path) -> None:
    writer = _RecordingWriter()
    asyncio.run(export_invoice(_data(60), tmp_path, writer=writer))
    # 14 on page 1, then 23 per page, and the summary sits under the last slice
    assert [len(p.cells) for p in writer.calls[0]] == [14, 23, 23]
    assert [p.includes_summary for p in writer.calls[0]] == [False, False, True]


def test_missing_currency_falls_back_to_settings(tmp_path: Path) -> None:
    data = _data()
    del data["meta"]["currency"]
    writer = _RecordingWriter()
    asyncio.run(export_invoice(data, tmp_path, writer=writer, settings=Settings(currency="EUR")))
    summary = writer.calls[0][-1].summary
    assert summary is not None
    assert dict(summary.lines)["Total"] == "€409.99"


def test_unnumbered_invoice_takes_next_number_with_settings_prefix(tmp_path: Path) -> None:
    data = _data()
    data["meta"]["number"] = ""
    engine = create_engine("sqlite://")
    try:
        with engine.connect() as conn:
            writer = _RecordingWriter()
            settings = Settings(invoice_prefix="ACME-")
            out = asyncio.run(export_invoice(data, tmp_path, writer=writer, settings=settings, db_session=conn))
            number = writer.calls[0][0].header.meta[0][1]
            assert re.fullmatch(r"ACME-\d{8}-001", number)
            assert out.name == invoice_filename(number)
    finally:
        engine.dispose()


def test_numbered_invoice_leaves_sequence_untouched(tmp_path: Path) -> None:
    engine = create_engine("sqlite://")
    try:
        with engine.connect() as conn:
            out = asyncio.run(export_invoice(_data(), tmp_path, writer=_RecordingWriter(), db_session=conn))
            assert out.name == "INV_20260105_001.pdf"
            assert peek_next_invoice_number(conn, prefix="INV-").endswith("-001")
    finally:
        engine.dispose()

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen.canvas import Canvas

from invoice_pdf.core.paths import resource_path
from invoice_pdf.core.settings import Settings
from invoice_pdf.layout.compositor import HeaderBlock, Page, SummaryBlock
from invoice_pdf.layout.geometry import PageGeometry
from invoice_pdf.pdf.table_layout import BODY_FONT_SIZE, PADDING_H, build_page_table, col_widths

logger = logging.getLogger(__name__)


# ===== Typography (tweak here) =====
TITLE_FONT_SIZE = 24
SELLER_FONT_SIZE = 12
TEXT_FONT_SIZE = 9
SMALL_FONT_SIZE = 8
LINE_STEP = 4.2 * mm
SUMMARY_STEP = 5 * mm
FOOTER_STEP = 3.6 * mm

SELLER_MAX_LINES = 5
PARTY_MAX_LINES = 4
META_MAX_LINES = 5

# Header band offsets, measured down from the top margin
TITLE_BASELINE = 8 * mm
META_TOP = 15 * mm
PARTY_TOP = 30 * mm
PARTY_COL_W = 55 * mm
SHIP_TO_X = 60 * mm

# Summary block: label/value column pair on the right, footer text on the left
SUMMARY_LABEL_W = 34 * mm
SUMMARY_COL_W = 72 * mm
FOOTER_GUTTER = 8 * mm

# Rows in fixed order: subtotal, discount, tax, total, paid, balance
_BOLD_SUMMARY_ROWS = {3, 5}
_RULE_ABOVE_ROWS = {3}

DEFAULT_BRAND = "#1B1464"


class DocumentWriter(Protocol):
    """Turns a page list into a file. May also be implemented with ``async def write``."""

    def write(
        self,
        pages: Sequence[Page],
        geometry: PageGeometry,
        out_path: Path,
        *,
        title: str = "",
        author: str = "",
    ) -> Path:
        ...


# ===== Helpers =====
def _register_fonts(settings: Settings) -> Tuple[str, str]:
    """Return (regular_font_name, bold_font_name)."""
    regular = "Helvetica"
    bold = "Helvetica-Bold"
    reg = Path(settings.font_path) if settings.font_path else resource_path("assets/fonts/NotoSans-Regular.ttf")
    bld = Path(settings.bold_font_path) if settings.bold_font_path else resource_path("assets/fonts/NotoSans-Bold.ttf")
    try:
        if reg.exists():
            pdfmetrics.registerFont(TTFont("InvoiceSans", str(reg)))
            regular = "InvoiceSans"
        if bld.exists():
            pdfmetrics.registerFont(TTFont("InvoiceSans-Bold", str(bld)))
            bold = "InvoiceSans-Bold"
    except TTFError:
        logger.warning("Could not load TrueType fonts (%s, %s); using Helvetica", reg, bld)
        return "Helvetica", "Helvetica-Bold"
    return regular, bold


def _brand_color(value: Optional[str]) -> colors.Color:
    try:
        return colors.HexColor(value or DEFAULT_BRAND)
    except ValueError:
        logger.warning("Invalid brand color %r; using %s", value, DEFAULT_BRAND)
        return colors.HexColor(DEFAULT_BRAND)


def _fit(text: str, max_width: float, font_name: str, font_size: float) -> str:
    """Hard-truncate a single line with an ellipsis."""
    width = pdfmetrics.stringWidth
    if width(text, font_name, font_size) <= max_width:
        return text
    s = text
    while s and width(s + "…", font_name, font_size) > max_width:
        s = s[:-1]
    return (s + "…") if s else "…"


def wrap_paragraph(text: str, max_width: float, font_name: str, font_size: float) -> List[str]:
    """Greedy word wrap that keeps explicit line breaks; overlong words are truncated."""
    width_fn = pdfmetrics.stringWidth
    lines: List[str] = []
    for raw in (text or "").replace("\r", "").split("\n"):
        words = raw.split()
        if not words:
            continue
        line: List[str] = []
        for w in words:
            trial = (" ".join(line + [w])).strip()
            if width_fn(trial, font_name, font_size) <= max_width or not line:
                line.append(w)
            else:
                lines.append(" ".join(line))
                line = [w]
        if line:
            lines.append(" ".join(line))
    return [_fit(ln, max_width, font_name, font_size) for ln in lines]


def wrap_text(text: str, max_width: float, font_name: str, font_size: float) -> List[str]:
    """Wrap text into at most two lines within max_width, truncating with ellipsis.

    Rules:
    - Prefer 1 line; allow 2 lines max.
    - If content overflows second line, hard-truncate the second line with an ellipsis.
    - If a single word exceeds max_width, truncate that word with ellipsis on the first line.
    - Returns a list of 1–2 strings.
    """
    s = (text or "").replace("\r", " ").replace("\n", " ")
    s = " ".join(s.split())  # collapse whitespace
    if not s:
        return [""]

    width = pdfmetrics.stringWidth

    def fit_line(words: List[str]) -> Tuple[str, List[str]]:
        # returns (line, remaining_words)
        line_words: List[str] = []
        for i, w in enumerate(words):
            if not line_words and width(w, font_name, font_size) > max_width:
                return _fit(w, max_width, font_name, font_size), words[i + 1 :]
            trial = " ".join(line_words + [w])
            if width(trial, font_name, font_size) <= max_width:
                line_words.append(w)
            else:
                return " ".join(line_words), words[i:]
        return " ".join(line_words), []

    line1, rem = fit_line(s.split(" "))
    if not rem:
        return [line1]

    line2, rem2 = fit_line(rem)
    if rem2:
        return [line1, _fit(line2 + " " + " ".join(rem2), max_width, font_name, font_size)]
    return [line1, line2]


# ===== Writer =====
class ReportLabWriter:
    """Draws composed pages with ReportLab: one canvas page per Page."""

    # The summary is drawn inside the reserved footer area, so its page needs the smaller row budget
    reserves_summary_room = True

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

    def write(
        self,
        pages: Sequence[Page],
        geometry: PageGeometry,
        out_path: Path | str,
        *,
        title: str = "",
        author: str = "",
    ) -> Path:
        out = Path(out_path)
        out.parent.mkdir(parents=True, exist_ok=True)

        font, bold_font = _register_fonts(self.settings)
        brand = _brand_color(self.settings.brand_color)

        c = Canvas(str(out), pagesize=(geometry.page_width, geometry.page_height))
        c.setTitle(title or "Invoice")
        c.setAuthor(author or "Invoice")

        for page in pages:
            c.setLineWidth(0.5)
            c.setFillColor(brand)
            c.setStrokeColor(brand)
            _draw_header(c, page.header, geometry, font, bold_font)
            _draw_table(c, page, geometry, font, bold_font, brand, self.settings.wrap_descriptions)
            if page.summary is not None:
                _draw_summary(c, page.summary, geometry, font, bold_font)
            c.showPage()

        c.save()
        logger.debug("Wrote %s page(s) to %s", len(pages), out)
        return out


def _draw_header(c: Canvas, header: HeaderBlock, geometry: PageGeometry, font: str, bold_font: str) -> None:
    top = geometry.page_height - geometry.margin
    left = geometry.margin
    right = geometry.page_width - geometry.margin

    c.setFont(bold_font, TITLE_FONT_SIZE)
    c.drawRightString(right, top - TITLE_BASELINE, header.title)

    # Meta: right-aligned label column and value column
    label_right = right - 32 * mm
    y = top - META_TOP
    for label, value in header.meta[:META_MAX_LINES]:
        c.setFont(font, TEXT_FONT_SIZE)
        if label:
            c.drawRightString(label_right, y, label)
        c.drawRightString(right, y, _fit(str(value), 30 * mm, font, TEXT_FONT_SIZE))
        y -= LINE_STEP

    if not header.full:
        return

    # Seller block, name emphasised
    seller = header.seller[:SELLER_MAX_LINES]
    y = top - 5 * mm
    for i, ln in enumerate(seller):
        size = SELLER_FONT_SIZE if i == 0 else TEXT_FONT_SIZE
        c.setFont(bold_font if i == 0 else font, size)
        c.drawString(left, y, _fit(ln, 90 * mm, bold_font if i == 0 else font, size))
        y -= LINE_STEP if i else 5 * mm

    for x, label, lines in (
        (left, header.bill_to_label, header.bill_to),
        (left + SHIP_TO_X, header.ship_to_label, header.ship_to),
    ):
        if not lines:
            continue
        y = top - PARTY_TOP
        c.setFont(bold_font, TEXT_FONT_SIZE)
        c.drawString(x, y, label)
        y -= 5 * mm
        c.setFont(font, TEXT_FONT_SIZE)
        for ln in lines[:PARTY_MAX_LINES]:
            c.drawString(x, y, _fit(ln, PARTY_COL_W, font, TEXT_FONT_SIZE))
            y -= 4 * mm


def _draw_table(
    c: Canvas,
    page: Page,
    geometry: PageGeometry,
    font: str,
    bold_font: str,
    brand: colors.Color,
    wrap: bool,
) -> None:
    content_width = geometry.content_width
    desc_w = col_widths(content_width)[1] - sum(PADDING_H)
    rows = []
    for cell in page.cells:
        if wrap:
            desc = "\n".join(wrap_text(cell.description, desc_w, font, BODY_FONT_SIZE))
        else:
            desc = _fit(" ".join(cell.description.split()), desc_w, font, BODY_FONT_SIZE)
        rows.append((cell.number, desc, cell.quantity, cell.unit_price, cell.amount))

    table = build_page_table(
        page.table_header,
        rows,
        content_width,
        geometry.row_height,
        geometry.table_header_height,
        brand,
        font=font,
        bold_font=bold_font,
    )
    _w, h = table.wrapOn(c, content_width, geometry.page_height)
    table.drawOn(c, geometry.margin, geometry.page_height - page.table_top - h)


def _draw_summary(c: Canvas, summary: SummaryBlock, geometry: PageGeometry, font: str, bold_font: str) -> None:
    right = geometry.page_width - geometry.margin
    label_right = right - SUMMARY_LABEL_W
    floor_y = geometry.margin
    y0 = geometry.page_height - summary.top - SUMMARY_STEP

    y = y0
    for i, (label, value) in enumerate(summary.lines):
        if i in _RULE_ABOVE_ROWS:
            c.line(right - SUMMARY_COL_W, y + SUMMARY_STEP - 1.5 * mm, right, y + SUMMARY_STEP - 1.5 * mm)
        f = bold_font if i in _BOLD_SUMMARY_ROWS else font
        size = TEXT_FONT_SIZE + 1 if i in _BOLD_SUMMARY_ROWS else TEXT_FONT_SIZE
        c.setFont(f, size)
        c.drawRightString(label_right, y, label)
        c.drawRightString(right, y, value)
        y -= SUMMARY_STEP

    # Footer paragraphs in the left column; whatever does not fit above the margin is dropped
    max_w = geometry.content_width - SUMMARY_COL_W - FOOTER_GUTTER
    y = y0
    for title, body in summary.footer:
        if y < floor_y:
            break
        if title:
            c.setFont(bold_font, TEXT_FONT_SIZE)
            c.drawString(geometry.margin, y, _fit(title, max_w, bold_font, TEXT_FONT_SIZE))
            y -= FOOTER_STEP + 0.6 * mm
        c.setFont(font, SMALL_FONT_SIZE)
        for ln in wrap_paragraph(body, max_w, font, SMALL_FONT_SIZE):
            if y < floor_y:
                logger.warning("Footer text truncated: not enough room below the summary")
                break
            c.drawString(geometry.margin, y, ln)
            y -= FOOTER_STEP
        y -= 1.5 * mm

from __future__ import annotations

import math
from dataclasses import dataclass

from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.units import mm

from invoice_pdf.core.errors import InvalidGeometryError


# ===== Layout constants (tweak here) =====
MARGIN = 20 * mm
ROW_HEIGHT = 8 * mm
# Header band: title, parties and meta on page 1, a short banner on later pages.
# The table's column-label row sits at the bottom of this band.
HEADER_HEIGHT = 60 * mm
TABLE_HEADER_HEIGHT = 8 * mm
# Measured up from the bottom edge; summary and payment details live here
RESERVED_FOOTER_HEIGHT = 75 * mm
SUMMARY_GAP = 6 * mm


@dataclass(frozen=True)
class PageGeometry:
    """Vertical budget of one paper format, in PDF points.

    Offsets used by the compositor are measured top-down from the page's top
    edge; the writer converts them to ReportLab's bottom-up coordinates.
    """

    page_width: float
    page_height: float
    margin: float
    row_height: float
    header_height: float
    reserved_footer_height: float
    table_header_height: float = TABLE_HEADER_HEIGHT
    summary_gap: float = SUMMARY_GAP

    @property
    def usable_height(self) -> float:
        return self.page_height - 2 * self.margin

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    def _rows_in(self, height: float) -> int:
        # Non-positive row heights give no rows; validate() reports them
        if self.row_height <= 0:
            return 0
        return math.floor(height / self.row_height) - 1

    @property
    def first_page_usable_rows(self) -> int:
        # The trailing -1 keeps a row of slack above the reserved area
        return self._rows_in(self.usable_height - self.header_height - self.reserved_footer_height)

    @property
    def continuation_page_usable_rows(self) -> int:
        return self._rows_in(self.usable_height - self.header_height)

    @property
    def summary_page_usable_rows(self) -> int:
        """Rows that fit on any page which also carries the summary block."""
        return self.first_page_usable_rows

    def validate(self) -> None:
        if self.row_height <= 0:
            raise InvalidGeometryError(f"row height must be positive, got {self.row_height}")
        if self.continuation_page_usable_rows <= 0:
            raise InvalidGeometryError(
                "page too small: a continuation page cannot fit the header plus one row "
                f"(usable height {self.usable_height:.1f}pt, header {self.header_height:.1f}pt, "
                f"row {self.row_height:.1f}pt)"
            )


def _paper(size: tuple[float, float]) -> PageGeometry:
    width, height = size
    return PageGeometry(
        page_width=width,
        page_height=height,
        margin=MARGIN,
        row_height=ROW_HEIGHT,
        header_height=HEADER_HEIGHT,
        reserved_footer_height=RESERVED_FOOTER_HEIGHT,
    )


PAPER_FORMATS: dict[str, PageGeometry] = {
    "A4": _paper(A4),
    "LETTER": _paper(LETTER),
}


def geometry_for(paper_format: str) -> PageGeometry:
    """Return the geometry of a named paper format (case-insensitive)."""
    key = (paper_format or "").strip().upper()
    try:
        return PAPER_FORMATS[key]
    except KeyError:
        supported = ", ".join(sorted(PAPER_FORMATS))
        raise InvalidGeometryError(f"unsupported paper format {paper_format!r} (supported: {supported})") from None

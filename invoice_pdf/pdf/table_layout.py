# invoice_pdf/pdf/table_layout.py
from typing import Sequence

from reportlab.platypus import Table, TableStyle
from reportlab.lib import colors
from reportlab.lib.units import mm

# Column widths (in mm); Description absorbs remainder
COL_W_NO = 12 * mm
COL_W_QTY = 16 * mm
COL_W_PRICE = 28 * mm
COL_W_AMOUNT = 30 * mm

W_GRID    = 0.60
W_OUTLINE = W_GRID  # outline matches grid
W_HEAVY   = 0.80  # header separator slightly thicker

PADDING_V = (1, 1)   # top, bottom
PADDING_H = (4, 4)   # left, right

HEADER_FONT_SIZE = 10
BODY_FONT_SIZE = 9
BODY_LEADING = 10

HEADER_FILL = colors.HexColor("#EEF0F8")


def col_widths(content_width: float) -> list[float]:
    fixed = COL_W_NO + COL_W_QTY + COL_W_PRICE + COL_W_AMOUNT
    # Ensure Description gets at least a practical minimum; use the remainder for exact fit
    desc = max(120.0, content_width - fixed)
    return [
        COL_W_NO,
        desc,
        COL_W_QTY,
        COL_W_PRICE,
        COL_W_AMOUNT,
    ]


def build_page_table(
    labels: Sequence[str],
    rows: Sequence[Sequence[str]],
    content_width: float,
    row_height: float,
    header_row_height: float,
    brand: colors.Color,
    font: str = "Helvetica",
    bold_font: str = "Helvetica-Bold",
) -> Table:
    """
    Build the table chunk for one page: the column-label row plus the page's rows.

    rows: already formatted cells (No., Description, Qty, Unit price, Amount);
    a description may hold one newline for a second wrapped line.
    Every body row gets the same fixed height so the drawn table matches the
    row budget the paginator used.
    """
    data = [list(labels)]
    for row in rows:
        data.append(list(row))

    row_heights = [header_row_height] + [row_height] * len(rows)

    t = Table(data, colWidths=col_widths(content_width), rowHeights=row_heights)

    ts = TableStyle()
    # Inner grid and outer outline
    ts.add("GRID", (0, 0), (-1, -1), W_GRID, brand)
    ts.add("LINEABOVE", (0, 0), (-1, 0), W_OUTLINE, brand)
    ts.add("LINEBELOW", (0, -1), (-1, -1), W_OUTLINE, brand)
    ts.add("LINEBEFORE", (0, 0), (0, -1), W_OUTLINE, brand)
    ts.add("LINEAFTER", (-1, 0), (-1, -1), W_OUTLINE, brand)

    # Header
    ts.add("BACKGROUND", (0, 0), (-1, 0), HEADER_FILL)
    ts.add("FONTNAME", (0, 0), (-1, 0), bold_font)
    ts.add("FONTSIZE", (0, 0), (-1, 0), HEADER_FONT_SIZE)
    ts.add("TEXTCOLOR", (0, 0), (-1, 0), brand)
    ts.add("ALIGN", (0, 0), (0, 0), "CENTER")   # No.
    ts.add("ALIGN", (2, 0), (2, 0), "CENTER")   # Qty
    ts.add("ALIGN", (3, 0), (4, 0), "RIGHT")    # Unit price, Amount
    ts.add("LINEBELOW", (0, 0), (-1, 0), W_HEAVY, brand)

    # Body
    if rows:
        ts.add("FONTNAME", (0, 1), (-1, -1), font)
        ts.add("FONTSIZE", (0, 1), (-1, -1), BODY_FONT_SIZE)
        ts.add("LEADING", (0, 1), (-1, -1), BODY_LEADING)
        ts.add("TEXTCOLOR", (0, 1), (-1, -1), brand)
        ts.add("ALIGN", (0, 1), (0, -1), "CENTER")  # No.
        ts.add("ALIGN", (2, 1), (2, -1), "CENTER")  # Qty
        ts.add("ALIGN", (3, 1), (4, -1), "RIGHT")   # Unit price, Amount

    # Padding
    ts.add("LEFTPADDING",  (0, 0), (-1, -1), PADDING_H[0])
    ts.add("RIGHTPADDING", (0, 0), (-1, -1), PADDING_H[1])
    ts.add("TOPPADDING",   (0, 0), (-1, -1), PADDING_V[0])
    ts.add("BOTTOMPADDING",(0, 0), (-1, -1), PADDING_V[1])

    # Vertically center all cells
    ts.add("VALIGN", (0, 0), (-1, -1), "MIDDLE")

    t.setStyle(ts)
    return t

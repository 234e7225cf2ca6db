from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Sequence, Tuple

from invoice_pdf.data.models import LineItem
from invoice_pdf.layout.geometry import PageGeometry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RowGroup:
    """Contiguous slice of line items rendered on one page.

    ``start`` is the index of the first row within the full item list.
    """

    rows: Tuple[LineItem, ...]
    start: int
    is_last_group: bool

    def __len__(self) -> int:
        return len(self.rows)


def paginate(
    rows: Sequence[LineItem],
    geometry: PageGeometry,
    *,
    reserve_summary_room: bool = False,
) -> List[RowGroup]:
    """Split ``rows`` into page-sized groups; the final group carries the summary.

    The first group takes ``first_page_usable_rows`` rows, later groups take
    ``continuation_page_usable_rows`` each, and the final slice is flagged last.

    With ``reserve_summary_room`` the page carrying the summary holds at most
    ``summary_page_usable_rows``: a larger final slice gives its last row to a
    new final group, or an empty final group is appended when that budget is 0.
    Renderers that draw the summary inside the reserved footer area turn this on.

    Raises InvalidGeometryError (before producing anything) when a
    continuation page cannot hold a single row.
    """
    geometry.validate()

    items = tuple(rows)
    first = max(0, geometry.first_page_usable_rows)
    per_page = geometry.continuation_page_usable_rows

    if len(items) <= first:
        return [RowGroup(rows=items, start=0, is_last_group=True)]

    groups: List[RowGroup] = [RowGroup(rows=items[:first], start=0, is_last_group=False)]
    pos = first
    while pos < len(items):
        chunk = items[pos : pos + per_page]
        groups.append(RowGroup(rows=chunk, start=pos, is_last_group=False))
        pos += len(chunk)

    tail = groups[-1]
    room = max(0, geometry.summary_page_usable_rows)
    if not reserve_summary_room or len(tail) <= room:
        groups[-1] = replace(tail, is_last_group=True)
    elif room >= 1:
        # Summary would not fit under a full continuation page: carry its last row over
        groups[-1] = replace(tail, rows=tail.rows[:-1])
        groups.append(RowGroup(rows=tail.rows[-1:], start=tail.start + len(tail) - 1, is_last_group=True))
    else:
        groups.append(RowGroup(rows=(), start=len(items), is_last_group=True))

    logger.debug(
        "Paginated %s rows into %s groups (first=%s, per page=%s)",
        len(items),
        len(groups),
        first,
        per_page,
    )
    return groups

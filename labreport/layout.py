"""Page geometry, colour theme and observation-table pagination.

All vertical positions in this package are measured top-down from the top
edge of the page, the way a reader sees the page. ``ReportCanvas`` converts
them to reportlab's bottom-up coordinates at draw time.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from reportlab.lib.pagesizes import A4, LETTER

PAGE_SIZES: dict[str, tuple[float, float]] = {
    "A4": A4,
    "LETTER": LETTER,
}


@dataclass(frozen=True)
class PageLayout:
    """Usable area of a page, derived from its size and margins."""

    width: float
    height: float
    margin: float = 50.0
    border_inset: float = 24.0
    header_gap: float = 20.0  # Continuation pages start this far below the margin
    footer_band: float = 30.0  # Reserved above the bottom margin for footers

    @classmethod
    def for_page_size(cls, name: str = "A4", margin: float = 50.0) -> "PageLayout":
        try:
            width, height = PAGE_SIZES[name.upper()]
        except KeyError:
            raise ValueError(f"Unsupported page size: {name}") from None
        return cls(width=width, height=height, margin=margin)

    @property
    def content_top(self) -> float:
        return self.margin + self.header_gap

    @property
    def content_bottom(self) -> float:
        """Cursor positions below this line overflow onto a new page."""
        return self.height - self.margin - self.footer_band

    @property
    def content_left(self) -> float:
        return self.margin

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin


@dataclass(frozen=True)
class Theme:
    """Dark report palette."""

    background: str = "#000000"
    border: str = "#444444"
    accent: str = "#ffb84a"
    text: str = "#ffffff"
    muted: str = "#bbbbbb"
    faint: str = "#777777"
    error: str = "#ff5555"
    header_text: str = "#000000"
    row_even: str = "#0a0a0a"
    row_odd: str = "#151515"


# Observation table
TABLE_HEADERS = ("t", "Voltage (V)", "Current (A)", "Remarks")
TABLE_COLUMN_WEIGHTS = (50, 120, 120, 180)


@dataclass(frozen=True)
class TableGeometry:
    """Row and column sizes for the observation table."""

    inset: float = 10.0
    header_height: float = 20.0
    header_gap: float = 2.0
    row_height: float = 18.0

    def left(self, layout: PageLayout) -> float:
        return layout.content_left + self.inset

    def total_width(self, layout: PageLayout) -> float:
        return layout.content_width - 2 * self.inset

    def column_widths(self, layout: PageLayout) -> list[float]:
        total = self.total_width(layout)
        weight_sum = sum(TABLE_COLUMN_WEIGHTS)
        return [total * weight / weight_sum for weight in TABLE_COLUMN_WEIGHTS]


@dataclass
class TablePage:
    """Header position and the (row index, row top) pairs drawn on one page."""

    header_top: float
    rows: list[tuple[int, float]] = field(default_factory=list)

    @property
    def row_indices(self) -> list[int]:
        return [index for index, _ in self.rows]


def plan_table_pages(
    row_count: int,
    first_header_top: float,
    layout: PageLayout,
    geometry: TableGeometry | None = None,
    row_heights: Sequence[float] | None = None,
) -> list[TablePage]:
    """Assign every table row to a page.

    The overflow check runs after each row: once the cursor has moved past
    ``layout.content_bottom`` and rows remain, the next row goes on a new
    page whose header sits at ``layout.content_top``. The first page always
    exists, so an empty table is a header-only page.

    ``row_heights`` gives the height of each row when cells wrap onto
    several lines; rows default to ``geometry.row_height``. A row taller
    than the default that would not fit above the bottom line moves to the
    next page before it is drawn.
    """
    geometry = geometry or TableGeometry()
    row_offset = geometry.header_height + geometry.header_gap
    if row_heights is None:
        row_heights = [geometry.row_height] * row_count

    pages = [TablePage(header_top=first_header_top)]
    cursor = first_header_top + row_offset
    for index in range(row_count):
        height = row_heights[index]
        tall = height > geometry.row_height
        if tall and pages[-1].rows and cursor + height > layout.content_bottom:
            pages.append(TablePage(header_top=layout.content_top))
            cursor = layout.content_top + row_offset

        pages[-1].rows.append((index, cursor))
        cursor += height
        if cursor > layout.content_bottom and index < row_count - 1:
            pages.append(TablePage(header_top=layout.content_top))
            cursor = layout.content_top + row_offset
    return pages

"""Cursor-based drawing surface over a reportlab canvas."""

from typing import BinaryIO

from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from labreport.layout import PageLayout, Theme

BODY_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"
MONO_FONT = "Courier"

LINE_SPACING = 1.2


def fit_text(text: str, font: str, size: float, width: float) -> str:
    """Truncate ``text`` with an ellipsis so it fits in ``width``."""
    if stringWidth(text, font, size) <= width:
        return text
    ellipsis = "..."
    while text and stringWidth(text + ellipsis, font, size) > width:
        text = text[:-1]
    return text + ellipsis


def hard_wrap(line: str, font: str, size: float, width: float) -> list[str]:
    """Break a line at character boundaries, keeping its whitespace intact."""
    if stringWidth(line, font, size) <= width:
        return [line]
    pieces: list[str] = []
    current = ""
    for char in line:
        if current and stringWidth(current + char, font, size) > width:
            pieces.append(current)
            current = ""
        current += char
    pieces.append(current)
    return pieces


def wrap_text(text: str, font: str, size: float, width: float) -> list[str]:
    """Word-wrap ``text``; words wider than ``width`` break by character."""
    lines = [
        piece
        for line in simpleSplit(text, font, size, width)
        for piece in hard_wrap(line, font, size, width)
    ]
    return lines or [""]


class ReportCanvas:
    """Tracks a top-down cursor and paints the page chrome on every new page.

    ``y`` is the distance of the cursor from the top edge of the current
    page. Text helpers draw at the cursor and advance it, starting a new
    page when the next line would cross ``layout.content_bottom``.
    """

    def __init__(
        self,
        buffer: BinaryIO,
        layout: PageLayout,
        theme: Theme | None = None,
        compress: bool = True,
        page_numbers: bool = True,
        title: str | None = None,
        author: str | None = None,
    ):
        self.layout = layout
        self.theme = theme or Theme()
        self.page_numbers = page_numbers
        self.page_count = 0
        self.y = layout.margin
        self._canvas = canvas.Canvas(
            buffer,
            pagesize=(layout.width, layout.height),
            pageCompression=1 if compress else 0,
        )
        self._canvas.setCreator("SparkLab Lab Report Generator")
        if title:
            self._canvas.setTitle(title)
        if author:
            self._canvas.setAuthor(author)

    @property
    def raw(self) -> canvas.Canvas:
        """The underlying reportlab canvas, for images and vector drawings."""
        return self._canvas

    def pdf_y(self, top: float) -> float:
        return self.layout.height - top

    # Pages

    def start_page(self) -> None:
        """Close the current page (if any) and paint a fresh one."""
        if self.page_count:
            self._canvas.showPage()
        self.page_count += 1
        self._paint_chrome()
        self.y = self.layout.margin

    def ensure_space(self, height: float) -> bool:
        """Start a new page unless ``height`` fits above the usable bottom."""
        if self.y + height <= self.layout.content_bottom:
            return False
        self.start_page()
        self.y = self.layout.content_top
        return True

    def finish(self) -> None:
        if not self.page_count:
            self.start_page()
        self._canvas.showPage()
        self._canvas.save()

    def _paint_chrome(self) -> None:
        layout = self.layout
        c = self._canvas
        c.saveState()
        c.setFillColor(self.theme.background)
        c.rect(0, 0, layout.width, layout.height, stroke=0, fill=1)

        inset = layout.border_inset
        c.setStrokeColor(self.theme.border)
        c.setLineWidth(0.8)
        c.rect(inset, inset, layout.width - 2 * inset, layout.height - 2 * inset, stroke=1, fill=0)

        if self.page_numbers:
            c.setFont(BODY_FONT, 8)
            c.setFillColor(self.theme.faint)
            c.drawRightString(layout.width - layout.margin, inset + 12, f"Page {self.page_count}")
        c.restoreState()

    # Primitives (positions are top-down)

    def fill_rect(self, x: float, top: float, width: float, height: float, color: str) -> None:
        self._canvas.setFillColor(color)
        self._canvas.rect(x, self.pdf_y(top + height), width, height, stroke=0, fill=1)

    def hline(self, x1: float, x2: float, top: float, color: str, width: float = 0.6) -> None:
        self._canvas.setStrokeColor(color)
        self._canvas.setLineWidth(width)
        self._canvas.line(x1, self.pdf_y(top), x2, self.pdf_y(top))

    def draw_text(
        self,
        text: str,
        x: float,
        top: float,
        font: str = BODY_FONT,
        size: float = 10,
        color: str | None = None,
        align: str = "left",
        width: float | None = None,
    ) -> None:
        """Draw one line whose glyph box starts at ``top``.

        With ``width`` given, ``align`` is relative to the box ``[x, x + width]``.
        """
        c = self._canvas
        c.setFont(font, size)
        c.setFillColor(color or self.theme.text)
        baseline = self.pdf_y(top + size * 0.85)
        if align == "center":
            center = x + width / 2 if width is not None else self.layout.width / 2
            c.drawCentredString(center, baseline, text)
        elif align == "right":
            right = x + width if width is not None else self.layout.width - self.layout.margin
            c.drawRightString(right, baseline, text)
        else:
            c.drawString(x, baseline, text)

    # Flowing text (advances the cursor)

    def move_down(self, lines: float = 1.0, size: float = 10) -> None:
        self.y += lines * size * LINE_SPACING

    def section_title(self, title: str) -> None:
        size = 14
        self.move_down(1)
        self.ensure_space(size * LINE_SPACING * 3)
        self.draw_text(title, self.layout.content_left, self.y, BOLD_FONT, size, self.theme.accent)
        title_width = stringWidth(title, BOLD_FONT, size)
        underline_top = self.y + size * 1.0
        self.hline(
            self.layout.content_left,
            self.layout.content_left + title_width,
            underline_top,
            self.theme.accent,
            0.8,
        )
        self.y += size * LINE_SPACING
        self.move_down(0.4)

    def paragraph(
        self,
        text: str,
        font: str = BODY_FONT,
        size: float = 10,
        color: str | None = None,
        indent: float = 0.0,
        align: str = "left",
    ) -> None:
        """Word-wrap ``text`` to the content width and flow it across pages."""
        x = self.layout.content_left + indent
        width = self.layout.content_width - indent
        leading = size * LINE_SPACING
        for line in simpleSplit(text, font, size, width):
            self.ensure_space(leading)
            self.draw_text(line, x, self.y, font, size, color, align=align, width=width)
            self.y += leading

    def preformatted(
        self,
        text: str,
        font: str = MONO_FONT,
        size: float = 10,
        color: str | None = None,
    ) -> None:
        """Draw text line by line, keeping indentation; overlong lines break."""
        x = self.layout.content_left
        width = self.layout.content_width
        leading = size * LINE_SPACING
        for raw_line in text.expandtabs(4).split("\n"):
            for line in hard_wrap(raw_line.rstrip("\r"), font, size, width):
                self.ensure_space(leading)
                self.draw_text(line, x, self.y, font, size, color)
                self.y += leading

    def error_line(self, message: str) -> None:
        self.paragraph(message, color=self.theme.error)

"""Section producers.

Each producer draws one conceptual part of the report onto a
``ReportCanvas`` and reports what it did as a ``SectionOutcome``. The
assembler runs them in order; tests can run any one of them on its own.
"""

import io
import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

import structlog
from reportlab.graphics import renderPDF
from reportlab.lib.utils import ImageReader
from svglib.svglib import svg2rlg

from labreport.canvas import (
    BOLD_FONT,
    BODY_FONT,
    LINE_SPACING,
    MONO_FONT,
    ReportCanvas,
    fit_text,
    wrap_text,
)
from labreport.images import DecodedImage, decode_data_url
from labreport.layout import TABLE_HEADERS, TableGeometry, plan_table_pages
from labreport.models import (
    DEFAULT_APPARATUS,
    DEFAULT_CALCULATIONS,
    DEFAULT_CONCLUSION,
    DEFAULT_OBJECTIVE,
    LabReport,
    is_blank,
)

logger = structlog.get_logger(__name__)

BULLET = "•"


class SectionStatus(str, Enum):
    """What a section producer did."""

    EMITTED = "emitted"
    SKIPPED = "skipped"
    DEGRADED = "degraded"  # Rendered, but an optional image was replaced by an error line


@dataclass
class SectionOutcome:
    """Result of running one section producer."""

    section: str
    status: SectionStatus
    pages: int = 0
    message: str | None = None


class ImageEmbedError(ValueError):
    """An embedded image could not be decoded or drawn."""


def format_calculations(value: Any) -> str:
    """Strings pass through untouched; structured values become indented JSON.

    Integers of any size stay exact and non-finite floats print as
    ``NaN`` / ``Infinity``, so the page shows what the client sent.
    """
    if value is None:
        return DEFAULT_CALCULATIONS
    if isinstance(value, str):
        return value if value.strip() else DEFAULT_CALCULATIONS
    return json.dumps(value, indent=2, ensure_ascii=False)


class SectionProducer:
    """Base class: subclasses implement ``draw`` and set ``name``."""

    name = "section"

    def render(self, canvas: ReportCanvas, report: LabReport) -> SectionOutcome:
        pages_before = canvas.page_count
        outcome = self.draw(canvas, report)
        outcome.pages = canvas.page_count - pages_before
        return outcome

    def draw(self, canvas: ReportCanvas, report: LabReport) -> SectionOutcome:
        raise NotImplementedError

    def _outcome(
        self, status: SectionStatus = SectionStatus.EMITTED, message: str | None = None
    ) -> SectionOutcome:
        return SectionOutcome(section=self.name, status=status, message=message)


class CoverSection(SectionProducer):
    """Title block, student info, objective, apparatus, theory and procedure."""

    name = "cover"

    def draw(self, canvas: ReportCanvas, report: LabReport) -> SectionOutcome:
        theme = canvas.theme
        canvas.start_page()

        canvas.paragraph(report.display_college, BOLD_FONT, 22, theme.accent, align="center")
        canvas.move_down(0.4, 22)
        canvas.paragraph(report.display_title, BOLD_FONT, 14, theme.text, align="center")
        canvas.move_down(1.5, 14)

        self._info_block(canvas, report)

        canvas.section_title("Objective")
        canvas.paragraph(DEFAULT_OBJECTIVE if is_blank(report.objective) else report.objective)

        if not is_blank(report.description):
            canvas.section_title("Description")
            canvas.paragraph(report.description)

        canvas.section_title("Apparatus")
        canvas.paragraph(DEFAULT_APPARATUS if is_blank(report.apparatus) else report.apparatus)

        if not is_blank(report.theory):
            canvas.section_title("Theory")
            canvas.paragraph(report.theory)

        canvas.section_title("Procedure")
        for step in report.procedure_steps():
            canvas.paragraph(f"{BULLET} {step}")

        return self._outcome()

    def _info_block(self, canvas: ReportCanvas, report: LabReport) -> None:
        theme = canvas.theme
        layout = canvas.layout
        left_label = layout.content_left + 20
        left_value = left_label + 100
        right_label = layout.width / 2 + 20
        right_value = right_label + 70
        value_width = right_label - left_value - 10
        line = 18

        rows_left = [
            ("Student Name :", report.author or "N/A"),
            ("Roll No :", report.roll or "-"),
            ("Date :", report.date or "N/A"),
        ]
        rows_right = [
            ("Instructor :", report.instructor_name or "-"),
            ("Title ID :", report.title_id or "-"),
            ("Generated :", datetime.now().strftime("%Y-%m-%d %H:%M")),
        ]

        canvas.ensure_space(line * len(rows_left))
        top = canvas.y
        for offset, (label, value) in enumerate(rows_left):
            y = top + offset * line
            canvas.draw_text(label, left_label, y, color=theme.muted)
            canvas.draw_text(fit_text(value, BODY_FONT, 10, value_width), left_value, y)
        for offset, (label, value) in enumerate(rows_right):
            y = top + offset * line
            canvas.draw_text(label, right_label, y, color=theme.muted)
            canvas.draw_text(
                fit_text(value, BODY_FONT, 10, layout.width - layout.margin - right_value),
                right_value,
                y,
            )
        canvas.y = top + line * len(rows_left)


class ObservationTableSection(SectionProducer):
    """Four-column observation table, repeated header on each continuation page.

    Long cell values wrap inside their column and the row grows to fit.
    """

    name = "observations"
    cell_font_size = 9.0

    def __init__(self, geometry: TableGeometry | None = None):
        self.geometry = geometry or TableGeometry()

    def draw(self, canvas: ReportCanvas, report: LabReport) -> SectionOutcome:
        layout = canvas.layout
        geometry = self.geometry
        canvas.start_page()
        canvas.section_title("Observation Table")

        widths = geometry.column_widths(layout)
        rows = [
            self._wrap_cells(observation.cells(index), widths)
            for index, observation in enumerate(report.observations)
        ]
        heights = [self._row_height(lines) for lines in rows]

        plan = plan_table_pages(len(rows), canvas.y, layout, geometry, row_heights=heights)
        bottom = canvas.y
        for page_number, page in enumerate(plan):
            if page_number:
                canvas.start_page()
            self._draw_header(canvas, page.header_top)
            bottom = page.header_top + geometry.header_height
            for index, top in page.rows:
                self._draw_row(canvas, top, heights[index], rows[index], index)
                bottom = top + heights[index]

        canvas.y = bottom + 12
        return self._outcome(message=f"{len(report.observations)} rows")

    def _wrap_cells(self, cells: list[str], widths: list[float]) -> list[list[str]]:
        return [
            wrap_text(value, BODY_FONT, self.cell_font_size, width - 8)
            for value, width in zip(cells, widths)
        ]

    def _row_height(self, cell_lines: list[list[str]]) -> float:
        leading = self.cell_font_size * LINE_SPACING
        line_count = max(len(lines) for lines in cell_lines)
        if line_count <= 1:
            return self.geometry.row_height
        padding = self.geometry.row_height - leading
        return line_count * leading + padding

    def _draw_header(self, canvas: ReportCanvas, top: float) -> None:
        layout = canvas.layout
        geometry = self.geometry
        x = geometry.left(layout)
        table_width = geometry.total_width(layout)
        canvas.fill_rect(x, top, table_width, geometry.header_height, canvas.theme.accent)
        for header, width in zip(TABLE_HEADERS, geometry.column_widths(layout)):
            canvas.draw_text(
                header,
                x,
                top + 5,
                BOLD_FONT,
                10,
                canvas.theme.header_text,
                align="center",
                width=width,
            )
            x += width

    def _draw_row(
        self,
        canvas: ReportCanvas,
        top: float,
        height: float,
        cell_lines: list[list[str]],
        index: int,
    ) -> None:
        layout = canvas.layout
        geometry = self.geometry
        theme = canvas.theme
        size = self.cell_font_size
        x = geometry.left(layout)
        fill = theme.row_even if index % 2 == 0 else theme.row_odd
        canvas.fill_rect(x, top, geometry.total_width(layout), height, fill)
        for lines, width in zip(cell_lines, geometry.column_widths(layout)):
            for offset, line in enumerate(lines):
                line_top = top + 4 + offset * size * LINE_SPACING
                canvas.draw_text(
                    line, x, line_top, BODY_FONT, size, theme.text, align="center", width=width
                )
            x += width


class ImageSection(SectionProducer):
    """A page holding one embedded image, or an error line when it won't embed."""

    title = "Image"
    error_text = "Error embedding image."
    box_height = 300.0
    box_width = 440.0

    def source(self, report: LabReport) -> tuple[str | None, str | None]:
        """Return ``(data_url, svg_markup)`` for this section."""
        raise NotImplementedError

    def draw(self, canvas: ReportCanvas, report: LabReport) -> SectionOutcome:
        data_url, svg_markup = self.source(report)
        if is_blank(data_url) and is_blank(svg_markup):
            return self._outcome(SectionStatus.SKIPPED)

        canvas.start_page()
        canvas.section_title(self.title)
        try:
            if not is_blank(svg_markup):
                self._draw_svg(canvas, svg_markup)
            else:
                decoded = decode_data_url(data_url)
                if decoded is None:
                    raise ImageEmbedError("value is not a base64 image data URL")
                self._draw_decoded(canvas, decoded)
        except Exception as e:
            logger.warning("Image embed failed", section=self.name, error=str(e))
            canvas.error_line(self.error_text)
            return self._outcome(SectionStatus.DEGRADED, message=str(e))
        return self._outcome()

    def _box(self, canvas: ReportCanvas) -> tuple[float, float, float, float]:
        """Image box ``(x, top, width, height)`` centred under the cursor."""
        layout = canvas.layout
        width = min(self.box_width, layout.content_width)
        height = min(self.box_height, layout.content_bottom - canvas.y)
        x = layout.content_left + (layout.content_width - width) / 2
        return x, canvas.y, width, height

    def _draw_decoded(self, canvas: ReportCanvas, image: DecodedImage) -> None:
        if image.is_svg:
            self._draw_svg(canvas, image.data.decode("utf-8"))
        else:
            self._draw_raster(canvas, image.data)

    def _draw_raster(self, canvas: ReportCanvas, data: bytes) -> None:
        reader = ImageReader(io.BytesIO(data))
        image_width, image_height = reader.getSize()
        if not image_width or not image_height:
            raise ImageEmbedError("image has no pixels")
        x, top, box_width, box_height = self._box(canvas)
        scale = min(box_width / image_width, box_height / image_height)
        width, height = image_width * scale, image_height * scale
        left = x + (box_width - width) / 2
        image_top = top + (box_height - height) / 2
        canvas.raw.drawImage(
            reader, left, canvas.pdf_y(image_top + height), width=width, height=height, mask="auto"
        )
        canvas.y = top + box_height + 12

    def _draw_svg(self, canvas: ReportCanvas, markup: str) -> None:
        drawing = svg2rlg(io.BytesIO(markup.encode("utf-8")))
        if drawing is None or not drawing.width or not drawing.height:
            raise ImageEmbedError("SVG markup could not be parsed")
        x, top, box_width, box_height = self._box(canvas)
        scale = min(box_width / drawing.width, box_height / drawing.height)
        drawing.scale(scale, scale)
        drawing.width *= scale
        drawing.height *= scale
        left = x + (box_width - drawing.width) / 2
        renderPDF.draw(drawing, canvas.raw, left, canvas.pdf_y(top + drawing.height))
        canvas.y = top + box_height + 12


class ChartSection(ImageSection):
    """Auto-plotted V-I graph: raster data URL or SVG markup."""

    name = "chart"
    title = "Graph (Auto-Plotted)"
    error_text = "Error embedding chart image."

    def source(self, report: LabReport) -> tuple[str | None, str | None]:
        return report.chart_image, report.chart_svg


class CircuitSection(ImageSection):
    """Circuit diagram capture."""

    name = "circuit"
    title = "Circuit Diagram"
    error_text = "Error embedding circuit diagram."
    box_height = 320.0

    def source(self, report: LabReport) -> tuple[str | None, str | None]:
        return report.circuit_image, None


class CalculationsSection(SectionProducer):
    """Calculations, line fit, result, conclusion, signature lines and footer caption."""

    name = "calculations"

    def __init__(self, footer_text: str = "Auto-generated by BEEE Lab Report Generator"):
        self.footer_text = footer_text

    def draw(self, canvas: ReportCanvas, report: LabReport) -> SectionOutcome:
        theme = canvas.theme
        layout = canvas.layout
        canvas.start_page()

        canvas.section_title("Calculations")
        canvas.preformatted(format_calculations(report.calculations), MONO_FONT, 10)

        if report.fit is not None:
            canvas.section_title("Line Fit")
            for line in report.fit.lines():
                canvas.paragraph(line)
            if report.fit.steps:
                canvas.move_down(0.5)
                canvas.paragraph("Calculation steps:", color=theme.muted)
                for step in report.fit.steps:
                    canvas.paragraph(f"{BULLET} {step}", indent=6)

        result = report.result_text()
        if result is not None:
            canvas.section_title("Result")
            canvas.paragraph(result)

        canvas.section_title("Conclusion / Remarks")
        canvas.paragraph(DEFAULT_CONCLUSION if is_blank(report.conclusion) else report.conclusion)

        canvas.move_down(2)
        canvas.ensure_space(60)
        line_top = canvas.y + 30
        line_length = 160
        left = layout.content_left + 10
        right = layout.width - layout.content_left - 10 - line_length
        for x, label in ((left, "Student Signature"), (right, "Instructor Signature")):
            canvas.hline(x, x + line_length, line_top, theme.faint)
            canvas.draw_text(label, x, line_top + 5, color=theme.text)
        canvas.y = line_top + 20

        canvas.draw_text(
            self.footer_text,
            0,
            layout.height - 40,
            BODY_FONT,
            8,
            theme.faint,
            align="center",
            width=layout.width,
        )
        return self._outcome()


class ThankYouSection(SectionProducer):
    """Closing page addressed to the student."""

    name = "thank_you"

    def draw(self, canvas: ReportCanvas, report: LabReport) -> SectionOutcome:
        theme = canvas.theme
        canvas.start_page()
        canvas.section_title("Thank You")
        canvas.move_down(2)
        canvas.paragraph("Thank you!", BOLD_FONT, 18, theme.text, align="center")
        canvas.move_down(0.5, 18)
        name_line = f"Student: {report.author}" if not is_blank(report.author) else "Student"
        canvas.paragraph(name_line, BODY_FONT, 11, theme.muted, align="center")
        canvas.move_down(1)
        canvas.paragraph(
            "We hope the Lab Report was helpful. Visit again - SparkLab.", align="center"
        )
        canvas.move_down(2)
        canvas.paragraph(
            "Generated by BEEE Lab Report Generator", BODY_FONT, 9, theme.faint, align="center"
        )
        return self._outcome()

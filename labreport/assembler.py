"""Report assembler.

Runs the section producers in order against one canvas and returns the
finished PDF. The whole document is rendered into memory before anything
is handed back, so a failure in any section surfaces as an exception and
never as a truncated file.
"""

import io
import time
from collections.abc import Iterator
from dataclasses import dataclass, field

import structlog

from labreport.canvas import ReportCanvas
from labreport.layout import PageLayout, TableGeometry, Theme
from labreport.models import LabReport, report_filename
from labreport.sections import (
    CalculationsSection,
    ChartSection,
    CircuitSection,
    CoverSection,
    ObservationTableSection,
    SectionOutcome,
    SectionProducer,
    SectionStatus,
    ThankYouSection,
)

logger = structlog.get_logger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass
class ReportAssemblerConfig:
    """Configuration for report assembly."""

    page_size: str = "A4"
    margin: float = 50.0
    compress: bool = True
    page_numbers: bool = True
    thank_you_page: bool = False
    footer_text: str = "Auto-generated by BEEE Lab Report Generator"
    theme: Theme = field(default_factory=Theme)
    table: TableGeometry = field(default_factory=TableGeometry)


@dataclass
class RenderedReport:
    """A finished PDF plus what each section did."""

    content: bytes
    filename: str
    page_count: int
    outcomes: list[SectionOutcome] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.content)

    def outcome(self, section: str) -> SectionOutcome | None:
        for outcome in self.outcomes:
            if outcome.section == section:
                return outcome
        return None

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start : start + chunk_size]


class ReportAssembler:
    """Assembles a lab report PDF from its section producers."""

    def __init__(
        self,
        config: ReportAssemblerConfig | None = None,
        sections: list[SectionProducer] | None = None,
    ):
        self.config = config or ReportAssemblerConfig()
        self.layout = PageLayout.for_page_size(self.config.page_size, self.config.margin)
        self.sections = sections if sections is not None else self.default_sections()

    def default_sections(self) -> list[SectionProducer]:
        """Cover, table, chart, circuit, calculations and the optional closing page."""
        sections: list[SectionProducer] = [
            CoverSection(),
            ObservationTableSection(self.config.table),
            ChartSection(),
            CircuitSection(),
            CalculationsSection(self.config.footer_text),
        ]
        if self.config.thank_you_page:
            sections.append(ThankYouSection())
        return sections

    def render(self, report: LabReport) -> RenderedReport:
        """Render ``report`` to PDF bytes.

        Raises whatever a section raises; image sections handle their own
        embedding failures and report them as degraded outcomes instead.
        """
        started = time.perf_counter()
        buffer = io.BytesIO()
        canvas = ReportCanvas(
            buffer,
            self.layout,
            theme=self.config.theme,
            compress=self.config.compress,
            page_numbers=self.config.page_numbers,
            title=report.display_title,
            author=report.author,
        )

        outcomes: list[SectionOutcome] = []
        for section in self.sections:
            outcome = section.render(canvas, report)
            outcomes.append(outcome)
            logger.debug(
                "Section rendered",
                section=outcome.section,
                status=outcome.status.value,
                pages=outcome.pages,
            )

        canvas.finish()
        content = buffer.getvalue()

        rendered = RenderedReport(
            content=content,
            filename=report_filename(report.title),
            page_count=canvas.page_count,
            outcomes=outcomes,
        )
        logger.info(
            "Report rendered",
            title=report.display_title,
            pages=rendered.page_count,
            size_bytes=rendered.size,
            rows=len(report.observations),
            degraded=[o.section for o in outcomes if o.status is SectionStatus.DEGRADED],
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return rendered


def assemble_report(
    report: LabReport, config: ReportAssemblerConfig | None = None
) -> RenderedReport:
    """Convenience wrapper: render ``report`` with a fresh assembler."""
    return ReportAssembler(config).render(report)

"""Lab report PDF rendering.

Turns a ``LabReport`` into a multi-page PDF through an ordered list of
section producers (cover, observation table, chart, circuit diagram,
calculations).

Use explicit imports:
    from labreport.models import LabReport, Observation
    from labreport.assembler import ReportAssembler, assemble_report
"""

__all__ = [
    # Models
    "LabReport",
    "Observation",
    # Sections
    "SectionOutcome",
    "SectionStatus",
    # Assembler
    "ReportAssembler",
    "ReportAssemblerConfig",
    "RenderedReport",
    "assemble_report",
]

"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends

from api.config import Settings, get_settings
from labreport.assembler import ReportAssembler, ReportAssemblerConfig

__all__ = ["SettingsDep", "AssemblerDep", "get_assembler"]


# Settings dependency
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_assembler(settings: SettingsDep) -> ReportAssembler:
    """Build a report assembler configured from settings, one per request."""
    config = ReportAssemblerConfig(
        page_size=settings.report_page_size,
        margin=settings.report_margin,
        compress=settings.report_compress,
        thank_you_page=settings.report_thank_you_page,
        footer_text=settings.report_footer_text,
    )
    return ReportAssembler(config)


AssemblerDep = Annotated[ReportAssembler, Depends(get_assembler)]

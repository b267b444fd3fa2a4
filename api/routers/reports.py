"""Lab report PDF endpoint."""

import re
from urllib.parse import quote

import structlog
from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from api.deps import AssemblerDep
from api.exceptions import ReportGenerationError
from api.schemas import ErrorResponse
from api.schemas.report import ReportRequest

router = APIRouter(tags=["Reports"])
logger = structlog.get_logger()

REPORT_PATH = "/generate-report"
FALLBACK_FILENAME = "Lab-Report.pdf"

# Characters that cannot appear inside a quoted header parameter
_HEADER_UNSAFE = re.compile(r'["\\\x00-\x1f\x7f]')


def content_disposition(filename: str) -> str:
    """Build an attachment header, adding RFC 5987 ``filename*`` for non-ASCII names."""
    cleaned = _HEADER_UNSAFE.sub("", filename)
    ascii_name = cleaned.encode("ascii", "ignore").decode("ascii")
    if not ascii_name.removesuffix(".pdf").strip("-"):
        ascii_name = FALLBACK_FILENAME

    header = f'attachment; filename="{ascii_name}"'
    if ascii_name != cleaned:
        header += f"; filename*=UTF-8''{quote(cleaned)}"
    return header


@router.post(
    REPORT_PATH,
    response_class=StreamingResponse,
    responses={
        200: {"content": {"application/pdf": {}}, "description": "Generated lab report"},
        405: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def generate_report(payload: ReportRequest, assembler: AssemblerDep) -> StreamingResponse:
    """
    Render a lab report PDF and return it as a download.

    The document is rendered completely before the response starts, so
    any failure becomes a JSON error instead of a truncated file. Broken
    chart or circuit images only replace their own page content with an
    error line.
    """
    report = payload.to_report()
    try:
        rendered = await run_in_threadpool(assembler.render, report)
    except Exception as e:
        logger.error("PDF generation failed", exc_info=e, title=report.display_title)
        raise ReportGenerationError(str(e) or type(e).__name__) from e

    return StreamingResponse(
        rendered.iter_chunks(),
        media_type="application/pdf",
        headers={
            "Content-Disposition": content_disposition(rendered.filename),
            "Content-Length": str(rendered.size),
        },
    )


"""Custom exceptions and error handling."""

from typing import Any

from fastapi import status


class LabReportError(Exception):
    """Base exception for the lab report service."""

    def __init__(
        self,
        message: str,
        code: str = "error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Any = None,
        headers: dict[str, str] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        self.headers = headers or {}
        super().__init__(message)

    def to_content(self) -> dict[str, Any]:
        """Render the JSON error body."""
        content: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details is not None:
            content["details"] = self.details
        return content


class MethodNotAllowedError(LabReportError):
    """Request used a method the endpoint does not accept."""

    def __init__(self, allowed: list[str] | None = None):
        allowed = allowed or ["POST"]
        super().__init__(
            message=f"Only {', '.join(allowed)} method allowed",
            code="method_not_allowed",
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            headers={"Allow": ", ".join(allowed)},
        )


class PayloadTooLargeError(LabReportError):
    """Request body exceeds the configured limit."""

    def __init__(self, limit_bytes: int):
        super().__init__(
            message=f"Request body exceeds {limit_bytes // (1024 * 1024)} MB limit",
            code="payload_too_large",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )


class ReportGenerationError(LabReportError):
    """Document assembly failed and no PDF can be returned."""

    def __init__(self, details: str):
        super().__init__(
            message="PDF generation failed",
            code="report_generation_failed",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
        )

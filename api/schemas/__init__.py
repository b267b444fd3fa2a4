"""Pydantic schemas package."""

from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error body."""

    error: str
    code: str
    field: str | None = None
    details: Any = None

"""Pytest configuration and fixtures."""

import base64
import io
import os
from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image

# Set test environment before any app code runs
os.environ["ENV"] = "test"
# Uncompressed content streams let tests look for drawn text in the PDF bytes
os.environ["REPORT_COMPRESS"] = "false"

SAMPLE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="200" height="100">'
    '<rect x="10" y="10" width="80" height="40" fill="#ffb84a"/>'
    '<line x1="0" y1="90" x2="200" y2="10" stroke="#ffffff" stroke-width="2"/>'
    "</svg>"
)


def make_png(width: int = 40, height: int = 20) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (255, 184, 74)).save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


@pytest.fixture
def png_data_url() -> str:
    return to_data_url(make_png())


@pytest.fixture
def svg_markup() -> str:
    return SAMPLE_SVG


@pytest.fixture
def report_payload() -> dict[str, Any]:
    """A complete request body in the serverless shape."""
    return {
        "title": "Ohm's Law Lab",
        "author": "Asha",
        "college": "City Engineering College",
        "roll": "21EE042",
        "date": "2024-03-01",
        "objective": "Verify Ohm's law.",
        "observations": [
            {"V": 1, "I": 0.1, "remarks": "ok"},
            {"V": 2, "I": 0.2, "remarks": "ok"},
        ],
        "calculations": "R = V / I = 10 ohm",
        "conclusion": "Resistance is constant.",
    }


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Each test sees settings built from its own environment."""
    from api.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    from api.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()

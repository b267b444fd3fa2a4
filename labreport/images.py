"""Data-URL image decoding.

Browsers hand chart and circuit captures over as ``data:`` URLs. Decoding
fails closed: anything that is not ``data:image/<type>;base64,<payload>``
with a valid base64 payload yields ``None`` instead of raising.
"""

import base64
import binascii
import re
from dataclasses import dataclass

_DATA_URL = re.compile(r"^data:(image/[\w.+-]+);base64,(.+)$", re.DOTALL)

SVG_MIME = "image/svg+xml"


@dataclass(frozen=True)
class DecodedImage:
    """Raw image bytes plus the MIME type declared by the data URL."""

    mime_type: str
    data: bytes

    @property
    def is_svg(self) -> bool:
        return self.mime_type == SVG_MIME


def decode_data_url(value: str | None) -> DecodedImage | None:
    """Decode a ``data:<mime>;base64,<payload>`` string, or return None."""
    if not value:
        return None

    match = _DATA_URL.match(value.strip())
    if not match:
        return None

    mime_type, payload = match.groups()
    # Line-wrapped payloads are legal base64; strip the whitespace first
    payload = "".join(payload.split())
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None

    if not data:
        return None
    return DecodedImage(mime_type=mime_type.lower(), data=data)

"""Input checks shared by the redesign and analysis handlers.

Runs before any ledger or gateway interaction. Order matters and matches
what clients already rely on: presence/type, then size, then encoding.
Only formats Pillow can open locally are decode-checked; anything else
under ``image/*`` is passed through for the model to judge.
"""

from __future__ import annotations

import base64
import binascii
import functools
import io
import re

import structlog
from PIL import Image

from roomrevive.errors import (
    ImageTooLargeError,
    InvalidImageError,
    InvalidStyleError,
    UnauthorizedError,
)
from roomrevive.handlers.prompts import is_known_style

logger = structlog.get_logger()

DATA_URL_PREFIX = "data:image/"
# data:image/<subtype>[;param=value]*;base64,<payload>
_DATA_URL_RE = re.compile(
    r"^data:image/(?P<subtype>[a-zA-Z0-9.+-]+)"
    r"(?:;[a-zA-Z0-9!#$&.+^_`{|}~-]+=[^;,]*)*"
    r";base64,(?P<payload>.+)$",
    re.S,
)


def validate_image(image: object, max_bytes: int) -> str:
    """Return the image data URL unchanged, or raise a validation error.

    ``max_bytes`` bounds the encoded string length, not the decoded size.
    """
    if not image or not isinstance(image, str):
        raise InvalidImageError("Invalid image data")
    if len(image) > max_bytes:
        raise ImageTooLargeError(
            f"Image too large. Maximum {max_bytes // (1024 * 1024)}MB allowed."
        )
    if not image.startswith(DATA_URL_PREFIX):
        raise InvalidImageError()

    match = _DATA_URL_RE.match(image)
    if match is None:
        raise InvalidImageError()
    try:
        raw = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageError() from exc

    if not raw:
        raise InvalidImageError()
    subtype = match.group("subtype").lower()
    if f"image/{subtype}" in _pillow_mime_types():
        _check_decodes(raw)
    else:
        # SVG, HEIC and friends go to the model as-is
        logger.debug("image_decode_skipped", subtype=subtype, size_bytes=len(raw))
    return image


@functools.cache
def _pillow_mime_types() -> frozenset[str]:
    """MIME types Pillow can open with the plugins installed here."""
    Image.init()
    return frozenset(mime.lower() for mime in Image.MIME.values())


def _check_decodes(raw: bytes) -> None:
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()  # full decode catches truncated files
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        logger.warning("image_decode_failed", error=str(exc), size_bytes=len(raw))
        raise InvalidImageError() from exc


def validate_style(style: object) -> str:
    if not isinstance(style, str) or not is_known_style(style):
        logger.info("invalid_style_rejected", style=str(style)[:50])
        raise InvalidStyleError()
    return style


def require_token(token: str | None) -> str:
    if not token or not token.strip():
        raise UnauthorizedError()
    return token.strip()

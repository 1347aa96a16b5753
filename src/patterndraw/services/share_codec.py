"""Share-link tokens for drawings.

A token is the compact form (see :mod:`patterndraw.services.compact_codec`),
optionally compressed, then base64url-encoded without padding so it can sit
in a ``?drawing=`` query parameter.  Tokens carry no marker saying whether
they were compressed, so decoding tries decompression first and falls back to
the raw bytes.

Links created before the compact form existed held percent-encoded JSON of
the whole document.  Those still load: if the compact parse fails the text is
read as legacy JSON.

Nothing in here raises on bad input.  Encoding always produces a token and
decoding returns ``None`` when no drawing can be recovered.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Optional
from urllib.parse import unquote, urlencode

import structlog
from pydantic import ValidationError

from patterndraw.services.compact_codec import decode_compact, encode_compact
from patterndraw.services.compression import (
    DECOMPRESSION_ERRORS,
    Compressor,
    DecompressedSizeError,
    NoopCompressor,
)
from patterndraw.services.drawing_document import (
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_PIXEL_SIZE,
    DrawingDocument,
    MatrixPattern,
)

log = structlog.get_logger()

DEFAULT_QUERY_PARAM = "drawing"

# Applied to legacy payloads when the key is absent or falsy.
_LEGACY_DEFAULTS = {
    "pattern": MatrixPattern.SQUARES.value,
    "pixelSize": DEFAULT_PIXEL_SIZE,
    "canvasWidth": DEFAULT_CANVAS_WIDTH,
    "canvasHeight": DEFAULT_CANVAS_HEIGHT,
}


# ---------------------------------------------------------------------------
# base64url helpers
# ---------------------------------------------------------------------------


def to_base64url(data: bytes) -> str:
    """Base64-encode with ``-``/``_`` and no ``=`` padding."""
    encoded = base64.b64encode(data).decode("ascii")
    return encoded.replace("+", "-").replace("/", "_").rstrip("=")


def from_base64url(token: str) -> bytes:
    """Inverse of :func:`to_base64url`.

    Raises ``binascii.Error`` for characters outside the alphabet or an
    impossible length.
    """
    standard = token.replace("-", "+").replace("_", "/")
    padded = standard + "=" * (-len(standard) % 4)
    return base64.b64decode(padded, validate=True)


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


class ShareCodec:
    """Turns drawing documents into URL-safe tokens and back."""

    def __init__(self, compressor: Optional[Compressor] = None) -> None:
        self.compressor: Compressor = compressor or NoopCompressor()

    def encode(self, document: DrawingDocument) -> str:
        """Encode *document* as a share token.

        A compressor failure is logged and the raw bytes are used instead.
        """
        raw = encode_compact(document).encode("utf-8")
        try:
            payload = self.compressor.compress(raw)
        except Exception as exc:
            log.debug(
                "share_compression_failed",
                compressor=self.compressor.name,
                error=str(exc),
            )
            payload = raw
        return to_base64url(payload)

    def decode(self, token: str) -> Optional[DrawingDocument]:
        """Recover a document from *token*, or ``None`` if nothing usable is in it."""
        try:
            data = from_base64url(token)
        except (binascii.Error, ValueError) as exc:
            log.warning("share_token_invalid_base64", error=str(exc))
            return None

        try:
            data = self.compressor.decompress(data)
        except DecompressedSizeError as exc:
            log.warning("share_token_too_large", error=str(exc))
            return None
        except DECOMPRESSION_ERRORS:
            # Not compressed; use the bytes as they are.
            pass

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            log.warning("share_token_not_text", error=str(exc))
            return None

        document = decode_compact(text)
        if document is not None:
            return document

        document = decode_legacy_json(text)
        if document is None:
            log.warning("share_token_unrecognised", length=len(token))
        return document

    def share_url(
        self,
        base_url: str,
        token: str,
        param: str = DEFAULT_QUERY_PARAM,
    ) -> str:
        """Build ``<base_url>?<param>=<token>``."""
        separator = "&" if "?" in base_url else "?"
        return f"{base_url}{separator}{urlencode({param: token})}"


# ---------------------------------------------------------------------------
# Legacy JSON links
# ---------------------------------------------------------------------------


def decode_legacy_json(text: str) -> Optional[DrawingDocument]:
    """Parse a pre-compact share payload (percent-encoded JSON)."""
    try:
        payload: Any = json.loads(unquote(text))
    except (ValueError, RecursionError) as exc:
        # RecursionError: nesting deeper than the interpreter stack
        log.debug("legacy_share_json_invalid", error=type(exc).__name__)
        return None

    if not isinstance(payload, dict):
        return None

    payload = dict(payload)
    for key, default in _LEGACY_DEFAULTS.items():
        if not payload.get(key):
            payload[key] = default
    for key in ("colors", "grid"):
        if not payload.get(key):
            payload[key] = {}

    try:
        return DrawingDocument.model_validate(payload)
    except ValidationError as exc:
        log.debug("legacy_share_document_invalid", errors=exc.error_count())
        return None

"""Byte compression strategies for share tokens.

The share codec does not probe for compression support itself; the host picks
a :class:`Compressor` at startup (see ``Settings.SHARE_COMPRESSION``) and
injects it.  ``GzipCompressor`` writes standard gzip members, which is what a
browser ``CompressionStream("gzip")`` produces and consumes.
"""

from __future__ import annotations

import gzip
import zlib
from typing import Protocol

# Signals "these bytes are not a gzip stream".
DECOMPRESSION_ERRORS = (OSError, EOFError, zlib.error)

# zlib window bits selecting the gzip container.
_GZIP_WBITS = 16 + zlib.MAX_WBITS

DEFAULT_MAX_OUTPUT = 1024 * 1024


class DecompressedSizeError(ValueError):
    """The stream inflates past the configured limit."""


class Compressor(Protocol):
    name: str

    def compress(self, data: bytes) -> bytes: ...

    def decompress(self, data: bytes) -> bytes: ...


class NoopCompressor:
    """Pass bytes through unchanged."""

    name = "none"

    def compress(self, data: bytes) -> bytes:
        return data

    def decompress(self, data: bytes) -> bytes:
        return data


class GzipCompressor:
    """gzip (RFC 1952) compression with a cap on inflated size."""

    name = "gzip"

    def __init__(self, level: int = 9, max_output: int = DEFAULT_MAX_OUTPUT) -> None:
        self.level = level
        self.max_output = max_output

    def compress(self, data: bytes) -> bytes:
        return gzip.compress(data, compresslevel=self.level)

    def decompress(self, data: bytes) -> bytes:
        """Inflate a single gzip member.

        Raises one of ``DECOMPRESSION_ERRORS`` for non-gzip or truncated
        input and :class:`DecompressedSizeError` past ``max_output`` bytes.
        """
        decompressor = zlib.decompressobj(wbits=_GZIP_WBITS)
        out = decompressor.decompress(data, self.max_output)
        if decompressor.unconsumed_tail:
            raise DecompressedSizeError(
                f"decompressed size exceeds {self.max_output} bytes"
            )
        if not decompressor.eof:
            raise EOFError("truncated gzip stream")
        return out


def build_compressor(enabled: bool, max_output: int = DEFAULT_MAX_OUTPUT) -> Compressor:
    """Return the gzip strategy when *enabled*, otherwise the pass-through one."""
    if enabled:
        return GzipCompressor(max_output=max_output)
    return NoopCompressor()

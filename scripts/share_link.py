#!/usr/bin/env python3
"""Encode or decode drawing share tokens from the command line.

Usage:
    python scripts/share_link.py encode drawing.json [--no-compress]
    python scripts/share_link.py decode <token>
    python scripts/share_link.py preview <token> out.png [--max-size 400]

``encode`` reads a drawing document as JSON (editor camelCase shape) and
prints the share token and URL.  ``decode`` prints the recovered document as
JSON.

Exit codes:
    0 -- success
    1 -- the input could not be read or decoded
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from patterndraw.config import settings
from patterndraw.services.compression import build_compressor
from patterndraw.services.drawing_document import DrawingDocument
from patterndraw.services.preview_renderer import PreviewRenderer
from patterndraw.services.share_codec import ShareCodec


def _codec(compress: bool) -> ShareCodec:
    return ShareCodec(
        build_compressor(compress, max_output=settings.SHARE_MAX_DECOMPRESSED_BYTES)
    )


def cmd_encode(args: argparse.Namespace) -> int:
    try:
        document = DrawingDocument.model_validate_json(Path(args.path).read_text())
    except (OSError, ValidationError) as exc:
        print(f"cannot read drawing: {exc}", file=sys.stderr)
        return 1

    codec = _codec(not args.no_compress)
    token = codec.encode(document)
    print(token)
    print(codec.share_url(settings.PUBLIC_BASE_URL, token, settings.SHARE_QUERY_PARAM))
    return 0


def cmd_decode(args: argparse.Namespace) -> int:
    document = _codec(True).decode(args.token)
    if document is None:
        print("no drawing could be recovered from the token", file=sys.stderr)
        return 1
    json.dump(document.to_json_dict(), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


def cmd_preview(args: argparse.Namespace) -> int:
    document = _codec(True).decode(args.token)
    if document is None:
        print("no drawing could be recovered from the token", file=sys.stderr)
        return 1
    Path(args.output).write_bytes(PreviewRenderer(args.max_size).to_png_bytes(document))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="JSON drawing -> share token")
    enc.add_argument("path", help="drawing document JSON file")
    enc.add_argument("--no-compress", action="store_true", help="skip gzip")
    enc.set_defaults(func=cmd_encode)

    dec = sub.add_parser("decode", help="share token -> JSON drawing")
    dec.add_argument("token")
    dec.set_defaults(func=cmd_decode)

    prev = sub.add_parser("preview", help="share token -> PNG preview")
    prev.add_argument("token")
    prev.add_argument("output", help="PNG file to write")
    prev.add_argument("--max-size", type=int, default=settings.PREVIEW_MAX_SIZE)
    prev.set_defaults(func=cmd_preview)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

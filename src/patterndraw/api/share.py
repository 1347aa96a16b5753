"""Share-link API -- /api/v1/share/*.

Unauthenticated: anyone holding a link can open the drawing in it, and the
editor can mint a link for an unsaved drawing.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from patterndraw.api.dependencies import get_share_codec
from patterndraw.config import settings
from patterndraw.services.audit_logger import AuditLogger
from patterndraw.services.drawing_document import DrawingDocument
from patterndraw.services.share_codec import ShareCodec

router = APIRouter(prefix="/api/v1/share", tags=["share"])
audit = AuditLogger()

# Generous upper bound; real tokens for a 100x100 canvas stay well below it.
MAX_TOKEN_LENGTH = 200_000


class ShareLinkResponse(BaseModel):
    token: str
    url: str


def build_share_link(
    codec: ShareCodec,
    document: DrawingDocument,
    drawing_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
) -> ShareLinkResponse:
    token = codec.encode(document)
    url = codec.share_url(settings.PUBLIC_BASE_URL, token, settings.SHARE_QUERY_PARAM)
    audit.log_share_event(
        token_length=len(token),
        compressor=codec.compressor.name,
        drawing_id=drawing_id,
        user_id=user_id,
    )
    return ShareLinkResponse(token=token, url=url)


@router.post("/encode", response_model=ShareLinkResponse)
async def encode_share_link(
    document: DrawingDocument,
    codec: ShareCodec = Depends(get_share_codec),
):
    """Build a share link for an unsaved drawing."""
    return build_share_link(codec, document)


@router.get("/decode", response_model=DrawingDocument)
async def decode_share_link(
    drawing: str = Query(..., min_length=1, max_length=MAX_TOKEN_LENGTH),
    codec: ShareCodec = Depends(get_share_codec),
):
    """Recover the drawing held in a share token.

    422 when the token yields neither a compact nor a legacy JSON drawing.
    """
    document = codec.decode(drawing)
    if document is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid share token",
        )
    return document

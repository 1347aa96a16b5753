"""Saved drawings API -- /api/v1/drawings/*."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from patterndraw.api.dependencies import (
    get_current_user,
    get_preview_renderer,
    get_share_codec,
)
from patterndraw.api.share import ShareLinkResponse, build_share_link
from patterndraw.database import get_db
from patterndraw.models import User
from patterndraw.services.drawing_service import (
    DrawingListResponse,
    DrawingRequest,
    DrawingResponse,
    create_drawing,
    delete_drawing,
    get_drawing,
    get_drawing_document,
    list_drawings,
    update_drawing,
)
from patterndraw.services.preview_renderer import PreviewRenderer
from patterndraw.services.share_codec import ShareCodec

router = APIRouter(prefix="/api/v1/drawings", tags=["drawings"])


@router.get("/", response_model=DrawingListResponse)
async def list_drawings_endpoint(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's drawings, newest first."""
    return await list_drawings(db, current_user.user_id)


@router.post("/", response_model=DrawingResponse, status_code=status.HTTP_201_CREATED)
async def create_drawing_endpoint(
    body: DrawingRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    drawing = await create_drawing(db, current_user.user_id, body.drawing_data)
    await db.commit()
    return drawing


@router.get("/{drawing_id}", response_model=DrawingResponse)
async def get_drawing_endpoint(
    drawing_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_drawing(db, drawing_id, current_user.user_id)


@router.put("/{drawing_id}", response_model=DrawingResponse)
async def update_drawing_endpoint(
    drawing_id: uuid.UUID,
    body: DrawingRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    drawing = await update_drawing(db, drawing_id, current_user.user_id, body.drawing_data)
    await db.commit()
    return drawing


@router.delete("/{drawing_id}")
async def delete_drawing_endpoint(
    drawing_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await delete_drawing(db, drawing_id, current_user.user_id)
    await db.commit()
    return {"success": True}


@router.get("/{drawing_id}/share", response_model=ShareLinkResponse)
async def share_drawing_endpoint(
    drawing_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    codec: ShareCodec = Depends(get_share_codec),
):
    """Build a share link for a saved drawing."""
    document = await get_drawing_document(db, drawing_id, current_user.user_id)
    return build_share_link(
        codec, document, drawing_id=drawing_id, user_id=current_user.user_id
    )


@router.get(
    "/{drawing_id}/preview.png",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
async def preview_drawing_endpoint(
    drawing_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    renderer: PreviewRenderer = Depends(get_preview_renderer),
):
    """Render a PNG thumbnail of a saved drawing."""
    document = await get_drawing_document(db, drawing_id, current_user.user_id)
    return Response(content=renderer.to_png_bytes(document), media_type="image/png")

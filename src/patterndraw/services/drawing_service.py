"""Saved-drawing CRUD with ownership checks.

Every operation is scoped to the authenticated user: unknown ids raise 404
and drawings owned by someone else raise 403.  Documents are stored in their
decoded JSON shape; the share codec is not involved here.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import structlog
from fastapi import HTTPException, status
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from patterndraw.models import Drawing
from patterndraw.services.audit_logger import AuditLogger
from patterndraw.services.drawing_document import DrawingDocument

log = structlog.get_logger()
audit = AuditLogger()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------


class DrawingRequest(BaseModel):
    drawing_data: DrawingDocument = Field(..., alias="drawingData")

    model_config = {"populate_by_name": True}


class DrawingResponse(BaseModel):
    id: uuid.UUID
    drawing_data: Optional[DrawingDocument] = Field(None, alias="drawingData")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    model_config = {"populate_by_name": True}


class DrawingListResponse(BaseModel):
    drawings: list[DrawingResponse]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_document(drawing: Drawing) -> Optional[DrawingDocument]:
    """Validate the stored JSON, returning ``None`` if it is unusable."""
    try:
        return DrawingDocument.model_validate(drawing.document)
    except ValidationError as exc:
        log.warning(
            "stored_drawing_invalid",
            drawing_id=str(drawing.drawing_id),
            errors=exc.error_count(),
        )
        return None


def _require_document(drawing: Drawing) -> DrawingDocument:
    document = _load_document(drawing)
    if document is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Invalid drawing data",
        )
    return document


def _to_response(drawing: Drawing, document: Optional[DrawingDocument]) -> DrawingResponse:
    return DrawingResponse(
        id=drawing.drawing_id,
        drawing_data=document,
        created_at=drawing.created_at,
        updated_at=drawing.updated_at,
    )


async def _get_owned_drawing(
    db: AsyncSession,
    drawing_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Drawing:
    """Fetch a drawing, raising 404 if missing and 403 if not owned by *user_id*."""
    result = await db.execute(select(Drawing).where(Drawing.drawing_id == drawing_id))
    drawing = result.scalar_one_or_none()

    if drawing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Drawing not found",
        )
    if drawing.owner_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden",
        )
    return drawing


# ---------------------------------------------------------------------------
# Service functions
# ---------------------------------------------------------------------------


async def list_drawings(db: AsyncSession, owner_id: uuid.UUID) -> DrawingListResponse:
    """Return the user's drawings, most recently updated first.

    Rows whose stored document no longer validates are listed with
    ``drawingData`` set to ``None`` so the client can still delete them.
    """
    result = await db.execute(
        select(Drawing)
        .where(Drawing.owner_id == owner_id)
        .order_by(Drawing.updated_at.desc())
    )
    drawings = result.scalars().all()
    return DrawingListResponse(
        drawings=[_to_response(d, _load_document(d)) for d in drawings]
    )


async def create_drawing(
    db: AsyncSession,
    owner_id: uuid.UUID,
    document: DrawingDocument,
) -> DrawingResponse:
    drawing = Drawing(owner_id=owner_id, document=document.to_json_dict())
    db.add(drawing)
    await db.flush()
    await db.refresh(drawing)

    audit.log_drawing_event("created", drawing.drawing_id, owner_id)
    return _to_response(drawing, document)


async def get_drawing(
    db: AsyncSession,
    drawing_id: uuid.UUID,
    user_id: uuid.UUID,
) -> DrawingResponse:
    """Load one drawing.  Raises 500 if the stored document is corrupt."""
    drawing = await _get_owned_drawing(db, drawing_id, user_id)
    return _to_response(drawing, _require_document(drawing))


async def get_drawing_document(
    db: AsyncSession,
    drawing_id: uuid.UUID,
    user_id: uuid.UUID,
) -> DrawingDocument:
    """Return just the document of an owned drawing (for sharing and previews)."""
    drawing = await _get_owned_drawing(db, drawing_id, user_id)
    return _require_document(drawing)


async def update_drawing(
    db: AsyncSession,
    drawing_id: uuid.UUID,
    user_id: uuid.UUID,
    document: DrawingDocument,
) -> DrawingResponse:
    drawing = await _get_owned_drawing(db, drawing_id, user_id)
    drawing.document = document.to_json_dict()
    await db.flush()
    await db.refresh(drawing)

    audit.log_drawing_event("updated", drawing.drawing_id, user_id)
    return _to_response(drawing, document)


async def delete_drawing(
    db: AsyncSession,
    drawing_id: uuid.UUID,
    user_id: uuid.UUID,
) -> None:
    drawing = await _get_owned_drawing(db, drawing_id, user_id)
    await db.delete(drawing)
    await db.flush()

    audit.log_drawing_event("deleted", drawing_id, user_id)

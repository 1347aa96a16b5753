"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Cookie, Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from patterndraw.config import settings
from patterndraw.database import get_db
from patterndraw.models import User
from patterndraw.services.auth_service import get_user_for_token, verify_token
from patterndraw.services.compression import build_compressor
from patterndraw.services.preview_renderer import PreviewRenderer
from patterndraw.services.share_codec import ShareCodec

# auto_error=False so we can fall back to the access_token cookie
_bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    access_token: str | None = Cookie(default=None),
) -> User:
    """Return the authenticated user.

    Token sources, in order: ``Authorization: Bearer`` header, then the
    ``access_token`` cookie.  Raises 401 when neither yields a valid token.
    """
    if credentials is not None:
        token = credentials.credentials
    elif access_token is not None:
        token = access_token
    else:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(token, "access")
    return await get_user_for_token(db, payload)


@lru_cache
def get_share_codec() -> ShareCodec:
    """The process-wide share codec, with compression chosen from settings."""
    return ShareCodec(
        build_compressor(
            settings.SHARE_COMPRESSION,
            max_output=settings.SHARE_MAX_DECOMPRESSED_BYTES,
        )
    )


def get_preview_renderer(
    max_size: int | None = Query(default=None, ge=16, le=1000),
) -> PreviewRenderer:
    """Renderer sized by the optional ``max_size`` query parameter."""
    return PreviewRenderer(max_size=max_size or settings.PREVIEW_MAX_SIZE)

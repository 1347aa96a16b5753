import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from patterndraw.api.dependencies import get_current_user
from patterndraw.database import get_db
from patterndraw.main import app

OWNER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def fake_user():
    """A MagicMock that quacks like an active User ORM instance."""
    user = MagicMock()
    user.user_id = OWNER_ID
    user.email = "artist@example.com"
    user.username = "artist"
    user.token_version = 0
    user.is_active = True
    user.created_at = datetime.now(timezone.utc)
    return user


@pytest.fixture
def mock_db():
    """An AsyncMock standing in for an AsyncSession."""
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def override_deps(fake_user, mock_db):
    """Authenticate as ``fake_user`` and route every DB call to ``mock_db``."""

    async def _get_db():
        yield mock_db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user] = lambda: fake_user
    yield mock_db
    app.dependency_overrides.clear()

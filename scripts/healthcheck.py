#!/usr/bin/env python3
"""Monitoring / healthcheck script for the Pattern Draw service.

Checks:
    - FastAPI application (/health)
    - Share-link round trip through /api/v1/share/encode and /decode
    - PostgreSQL
    - Redis

Outputs a JSON array of ``{service, status, latency_ms}`` objects.

Exit codes:
    0 -- all services healthy
    1 -- one or more services unhealthy
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
import time
from collections.abc import Awaitable, Callable
from typing import Any

import asyncpg  # type: ignore[import-untyped]
import httpx
from redis.asyncio import Redis

# ---------------------------------------------------------------------------
# Configuration -- all overridable via environment variables
# ---------------------------------------------------------------------------

APP_URL = os.environ.get("APP_URL", "http://localhost:8000")
DATABASE_URL = os.environ.get(
    "DATABASE_URL", "postgresql://app:devpassword@db:5432/patterndraw"
)
REDIS_URL = os.environ.get("REDIS_URL", "redis://redis:6379/0")

CHECK_TIMEOUT = float(os.environ.get("HEALTHCHECK_TIMEOUT", "5"))

_PROBE_DRAWING = {
    "pattern": "bricks",
    "pixelSize": 10,
    "canvasWidth": 4,
    "canvasHeight": 4,
    "colors": ["#000000"],
    "grid": {"1,2": "#000000"},
}


def _pg_dsn(url: str) -> str:
    """Normalise a SQLAlchemy-style URL to a plain ``postgresql://`` DSN."""
    for prefix in ("postgresql+asyncpg://", "postgresql+psycopg2://"):
        if url.startswith(prefix):
            url = "postgresql://" + url[len(prefix):]
    return url


async def _timed(service: str, probe: Callable[[], Awaitable[bool]]) -> dict[str, Any]:
    """Run *probe* and report its outcome and latency; exceptions mean unhealthy."""
    start = time.monotonic()
    entry: dict[str, Any] = {"service": service}
    try:
        healthy = await asyncio.wait_for(probe(), timeout=CHECK_TIMEOUT)
        entry["status"] = "healthy" if healthy else "unhealthy"
    except Exception as exc:
        entry["status"] = "unhealthy"
        entry["error"] = str(exc)
    entry["latency_ms"] = round((time.monotonic() - start) * 1000, 2)
    return entry


# ---------------------------------------------------------------------------
# Probes
# ---------------------------------------------------------------------------


def app_probe(client: httpx.AsyncClient) -> Callable[[], Awaitable[bool]]:
    async def probe() -> bool:
        resp = await client.get(f"{APP_URL}/health")
        return resp.status_code == 200

    return probe


def share_probe(client: httpx.AsyncClient) -> Callable[[], Awaitable[bool]]:
    async def probe() -> bool:
        encoded = await client.post(f"{APP_URL}/api/v1/share/encode", json=_PROBE_DRAWING)
        if encoded.status_code != 200:
            return False
        decoded = await client.get(
            f"{APP_URL}/api/v1/share/decode",
            params={"drawing": encoded.json()["token"]},
        )
        return decoded.status_code == 200 and decoded.json() == _PROBE_DRAWING

    return probe


async def postgres_probe() -> bool:
    conn = await asyncpg.connect(_pg_dsn(DATABASE_URL))
    try:
        return await conn.fetchval("SELECT 1") == 1
    finally:
        await conn.close()


async def redis_probe() -> bool:
    redis = Redis.from_url(REDIS_URL, decode_responses=True)
    try:
        return bool(await redis.ping())
    finally:
        await redis.aclose()


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

async def run_checks() -> list[dict[str, Any]]:
    """Run all health checks concurrently and return results."""
    async with httpx.AsyncClient() as client:
        results = await asyncio.gather(
            _timed("app", app_probe(client)),
            _timed("share_codec", share_probe(client)),
            _timed("postgres", postgres_probe),
            _timed("redis", redis_probe),
        )
    return list(results)


async def main() -> int:
    results = await run_checks()

    json.dump(results, sys.stdout, indent=2)
    sys.stdout.write("\n")

    all_healthy = all(r["status"] == "healthy" for r in results)
    return 0 if all_healthy else 1


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)

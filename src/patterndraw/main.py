from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from patterndraw.api.auth import router as auth_router
from patterndraw.api.dependencies import get_share_codec
from patterndraw.api.drawings import router as drawings_router
from patterndraw.api.share import router as share_router
from patterndraw.config import settings
from patterndraw.middleware.rate_limit import RateLimitMiddleware
from patterndraw.middleware.security import SecurityHeadersMiddleware

# Configure structlog
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        (
            structlog.dev.ConsoleRenderer()
            if settings.APP_ENV == "development"
            else structlog.processors.JSONRenderer()
        ),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(0),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    codec = get_share_codec()
    log.info("starting_up", env=settings.APP_ENV, share_compressor=codec.compressor.name)

    redis = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await redis.ping()
        log.info("redis_connected", url=settings.REDIS_URL)
    except Exception as e:
        log.warning("redis_connection_failed", error=str(e))
    app.state.redis = redis

    yield

    # Shutdown
    log.info("shutting_down")
    await redis.aclose()


app = FastAPI(
    title="Pattern Draw",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "development" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RateLimitMiddleware)

# Outermost; rate-limit 429s carry security headers too
app.add_middleware(SecurityHeadersMiddleware)


app.include_router(auth_router)
app.include_router(drawings_router)
app.include_router(share_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}

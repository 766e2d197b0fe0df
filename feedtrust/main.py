"""
Feedtrust — Scoring Service
Profile quality, spam and trust scoring for feed accounts.

Start with:
    uvicorn feedtrust.main:app --host 0.0.0.0 --port 8000
"""
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import redis.asyncio as aioredis
import structlog

from feedtrust.config import settings
from feedtrust.scoring.engine import ENGINE_VERSION

structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        settings.log_level
    ),
)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    from feedtrust.compute.backends import RedisScoreSink, load_account_source

    logger.info("service_starting", version=ENGINE_VERSION, environment=settings.ENVIRONMENT)

    client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    app.state.account_source = load_account_source(settings.ACCOUNT_SOURCE)
    app.state.score_sink = RedisScoreSink(client)

    yield

    await client.aclose()
    logger.info("service_stopped")


app = FastAPI(
    title="Feedtrust — Account Scoring",
    description="Profile quality, spam and trust level scoring for feed accounts.",
    version=ENGINE_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.middleware("http")
async def request_middleware(request: Request, call_next):
    request_id = str(uuid.uuid4())[:8]
    start = time.time()
    request.state.request_id = request_id
    response = await call_next(request)
    duration_ms = round((time.time() - start) * 1000, 2)
    response.headers["X-Request-Id"] = request_id
    response.headers["X-Response-Time"] = f"{duration_ms}ms"
    if request.url.path != "/health":
        logger.info("request",
                    method=request.method,
                    path=request.url.path,
                    status=response.status_code,
                    duration_ms=duration_ms,
                    request_id=request_id)
    return response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled_exception",
                 path=request.url.path,
                 error=str(exc),
                 type=type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "Something went wrong.",
            "request_id": getattr(request.state, "request_id", "unknown"),
        },
    )


from feedtrust.api.cron import router as cron_router

app.include_router(cron_router)


@app.get("/health")
async def health():
    return {"status": "ok", "engine_version": ENGINE_VERSION}

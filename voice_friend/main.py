"""
Voice AI Friend — FastAPI entry point.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from loguru import logger

from voice_friend.config import settings
from voice_friend.middleware.error_handler import global_exception_handler
from voice_friend.middleware.logging_middleware import logging_middleware
from voice_friend.middleware.rate_limit import limiter
from voice_friend.models.schemas import HealthResponse
from voice_friend.services.corpus_index import CorpusIndex
from voice_friend.services.pipeline import create_pipeline

# ── Routes ───────────────────────────────────────────────
from voice_friend.routes.voice import router as voice_router
from voice_friend.routes.analytics import router as analytics_router


# ── Lifespan ─────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    # ParseError propagates: no requests are served without an index.
    index = CorpusIndex.load(settings.DATASET_PATH, settings.DATASET_ENCODING)
    app.state.corpus_index = index
    app.state.pipeline = create_pipeline(settings, index)
    logger.info("Dataset indexed, response pipeline ready")
    yield
    logger.info("Shutting down gracefully")


# ── App ──────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Low-latency voice companion API",
    lifespan=lifespan,
)

# ── Rate Limiter ─────────────────────────────────────────
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ── CORS ─────────────────────────────────────────────────
origins = settings.CORS_ORIGINS.split(",") if settings.CORS_ORIGINS != "*" else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Custom Middleware ────────────────────────────────────
app.middleware("http")(global_exception_handler)
app.middleware("http")(logging_middleware)

# ── Register Routers ────────────────────────────────────
app.include_router(voice_router)
app.include_router(analytics_router)


# ── Health Check ─────────────────────────────────────────
@app.get("/health", response_model=HealthResponse, tags=["health"])
@app.get("/api/health", response_model=HealthResponse, tags=["health"])
async def health(request: Request):
    return HealthResponse(
        status="healthy",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        dataset=request.app.state.corpus_index.stats(),
        pipeline=request.app.state.pipeline.stats(),
    )


# ── Run ──────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "voice_friend.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info",
    )

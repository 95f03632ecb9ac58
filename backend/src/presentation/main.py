"""
FastAPI Main Application
Entry point with all routers and middleware
"""
import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.middleware import SlowAPIMiddleware
from slowapi.errors import RateLimitExceeded
from fastapi.responses import JSONResponse

from core.config import settings
from core.database import init_db, close_db, health_check as database_health_check
from core.logging_config import logger
from presentation.api.v1.errors import register_exception_handlers
from presentation.api.v1.endpoints import (
    pipeline_router,
    messaging_router,
    documents_router,
)
from presentation.realtime.messaging_hub import sio

# Per-client HTTP throttle; the per-conversation message cap lives in the messaging service
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    enabled=settings.RATE_LIMIT_ENABLED,
)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Application pipeline, eligibility-gated messaging and document sharing",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting middleware
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, lambda request, exc: JSONResponse(
    status_code=429,
    content={"error": "RateLimitExceeded", "detail": "Rate limit exceeded. Please try again later."}
))
app.add_middleware(SlowAPIMiddleware)

register_exception_handlers(app)

# Include API routers
app.include_router(pipeline_router, prefix="/api/v1", tags=["pipeline"])
app.include_router(messaging_router, prefix="/api/v1/messaging", tags=["messaging"])
app.include_router(documents_router, prefix="/api/v1", tags=["documents"])


# Health check
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    database_ok = await database_health_check()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "up" if database_ok else "down",
        "version": settings.APP_VERSION,
    }


# Startup event
@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")
    if settings.DEBUG:
        # Migrations in DB/ own the schema outside local development
        await init_db()
        logger.info("Database tables created")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info(f"Shutting down {settings.APP_NAME}")
    await close_db()


# Wrap FastAPI with Socket.IO
socket_app = socketio.ASGIApp(
    sio,
    app,
    socketio_path="/socket.io"
)

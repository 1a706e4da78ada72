"""
ChatDesk - FastAPI Application

Main entry point for the backend API. The lifespan builds the application
context, starts the WhatsApp ingestion loop and the subscription job, and
stops them on shutdown.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatdesk.config.settings import settings
from chatdesk.infrastructure.exceptions import (
    ChatDeskError,
    ValidationError,
    NotFoundError,
    RateLimitError,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    from chatdesk.context import build_context
    from chatdesk.infrastructure.db import SqlStorageGateway, close_db, init_db

    logger.info(f"ChatDesk Backend starting in {settings.environment} mode...")

    # Database is required: failure here aborts startup
    await init_db()
    logger.info("SQLModel database connection pool initialized")

    context = build_context(settings, SqlStorageGateway())
    app.state.context = context
    await context.start()

    yield

    await context.stop()
    app.state.context = None

    try:
        await close_db()
        logger.info("SQLModel database connection pool closed")
    except Exception as e:
        logger.warning(f"SQLModel database shutdown error: {e}")

    logger.info("ChatDesk Backend shutting down...")


app = FastAPI(
    title="ChatDesk",
    description="WhatsApp commerce dashboard backend",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS configuration from Settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle validation errors."""
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    """Handle not found errors."""
    return JSONResponse(status_code=404, content=exc.to_dict())


@app.exception_handler(RateLimitError)
async def rate_limit_error_handler(request: Request, exc: RateLimitError):
    """Handle rate limit errors."""
    return JSONResponse(status_code=429, content=exc.to_dict())


@app.exception_handler(ChatDeskError)
async def general_error_handler(request: Request, exc: ChatDeskError):
    """Handle all other application errors."""
    return JSONResponse(status_code=500, content=exc.to_dict())


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "chatdesk"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "ChatDesk API",
        "version": "1.0.0",
        "docs": "/docs",
    }


# ============================================================================
# Import and register routers
# ============================================================================

from chatdesk.api.routes import messages, settings as settings_routes, subscriptions

app.include_router(messages.router)
app.include_router(settings_routes.router)
app.include_router(subscriptions.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "chatdesk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )

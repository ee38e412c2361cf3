"""
TicketDesk - Main Application
==============================

Support ticket service with automatic LLM classification.

Modules:
- Tickets: Ticket and category management
- Classification: LLM-backed categorisation with rate limiting and fallback

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects and policies
- Infrastructure: Database, LLM, rate limiter
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from ticketdesk.config import Settings, settings
from ticketdesk.core import ConfigurationException

# Infrastructure
from ticketdesk.infrastructure.database import init_database, close_database, create_tables
from ticketdesk.infrastructure.llm import ILLMClient, build_llm_client

# Classification Module
from ticketdesk.classification.application import ClassificationEngine, ClassifierOptions
from ticketdesk.classification.infrastructure import InMemoryRateLimiter, LLMClassificationBackend

# Module Routers
from ticketdesk.classification.interfaces import classification_router
from ticketdesk.tickets.interfaces import tickets_router, categories_router

# Logging and Middleware
from ticketdesk.shared.infrastructure.logging import setup_logging, get_logger
from ticketdesk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    global_exception_handler
)

logger = get_logger(__name__)


def build_classification_engine(
    config: Settings = settings,
    rate_limiter: Optional[InMemoryRateLimiter] = None
) -> ClassificationEngine:
    """
    Wire the classification engine from configuration.

    The LLM client is only built when classification is enabled. A missing
    key leaves the backend without a client, so calls degrade to fallback.
    """
    llm_client: Optional[ILLMClient] = None
    if config.classify_enabled:
        try:
            llm_client = build_llm_client(config)
        except ConfigurationException as e:
            logger.warning(f"LLM client not configured - using fallback classification: {e.message}")

    return ClassificationEngine(
        backend=LLMClassificationBackend(llm_client),
        rate_limiter=rate_limiter or InMemoryRateLimiter(),
        options=ClassifierOptions.from_settings(config)
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database
    3. Create database tables
    4. Build the classification engine

    SHUTDOWN:
    1. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting TicketDesk", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()

    # Register ORM models on the metadata before creating tables
    import ticketdesk.tickets.infrastructure.models  # noqa: F401

    # Tables are created on startup (use migrations in production)
    logger.info("Creating database tables")
    try:
        await create_tables()
    except Exception as e:
        logger.warning(f"Database not available - running in degraded mode: {e}")

    logger.info("Initializing classification engine", extra={
        "classification_enabled": settings.classify_enabled,
        "llm_provider": settings.llm_provider
    })
    app.state.classification_engine = build_classification_engine(settings)

    logger.info("TicketDesk started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down TicketDesk")
    await close_database()
    logger.info("TicketDesk shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="TicketDesk API",
    description="""
    ## Support Ticket Service with Automatic Classification

    ### Tickets

    - `GET /tickets` - Search, filter, sort and paginate tickets
    - `POST /tickets` - Create a ticket
    - `GET /tickets/{id}` - Get a ticket
    - `PATCH /tickets/{id}` - Update status, category or content
    - `GET /categories` - List categories with ticket counts

    ### Classification

    - `POST /tickets/{id}/classify` - Classify a ticket (LLM or fallback)
    - `GET /tickets/classify/status` - Current rate limit status

    A category the user changed after classification is never overwritten.
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
# Added last runs first: the correlation ID must exist before request logging
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
# Classification first so /tickets/classify/status is not captured by /tickets/{ticket_id}
app.include_router(classification_router)
app.include_router(tickets_router)
app.include_router(categories_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "classification": "enabled",
                        "llm_provider": "openai"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """Health check endpoint for load balancers and orchestrators."""
    engine = getattr(request.app.state, "classification_engine", None)
    if engine is None:
        classification = "not_initialized"
    else:
        classification = "enabled" if engine.enabled else "disabled"

    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": {
            "classification": classification,
            "llm_provider": settings.llm_provider
        }
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "TicketDesk",
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "tickets": {
                "prefix": "/tickets",
                "endpoints": [
                    "GET /tickets - List tickets",
                    "POST /tickets - Create ticket",
                    "GET /tickets/{id} - Get ticket",
                    "PATCH /tickets/{id} - Update ticket",
                    "GET /categories - List categories"
                ]
            },
            "classification": {
                "prefix": "/tickets",
                "endpoints": [
                    "POST /tickets/{id}/classify - Classify ticket",
                    "GET /tickets/classify/status - Rate limit status"
                ]
            }
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ticketdesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )

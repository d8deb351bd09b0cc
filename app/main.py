# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the VoiceNative Directory API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    DirectoryException,
    directory_exception_handler,
    validation_exception_handler,
)
from app.middleware import SessionRedirectMiddleware
from app.routers import admin, categories, health, listings, premium, reports, sitemap, webhooks
from app.auth import routes as auth_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs the effective configuration on startup; there are no background
    tasks to start or stop.
    """
    logger.info(f"Starting VoiceNative Directory API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(
        f"Rate limit backend: {settings.RATE_LIMIT_BACKEND}; "
        f"daily submission quota: {settings.MAX_SUBMISSIONS_PER_DAY}"
    )
    if settings.RATE_LIMIT_BACKEND == "memory" and settings.is_production:
        logger.warning("In-memory rate limiting is per-process; use database or redis with multiple instances")

    yield

    logger.info("Shutting down VoiceNative Directory API")


# Create FastAPI application
app = FastAPI(
    title="VoiceNative Directory API",
    description="""
## Directory of Voice-Native Apps

Submit voice-first apps, browse and search the directory, upvote favourites
and follow upcoming launches.

### Listing Lifecycle

| Status | Meaning |
|--------|---------|
| **pending** | Submitted or edited, waiting for review |
| **approved** | Public; locked for the owner |
| **rejected** | Hidden, with a reason the owner can act on |

### Workflow Responses

Submit, edit, toggles, reports and admin actions all answer with the same
shape, with the HTTP status of the outcome:

```json
{"success": false, "error": "An app with this website URL already exists: \\"Talkative\\".",
 "code": "DUPLICATE_RESOURCE", "data": {}}
```

### Quick Start

```bash
# Browse
curl "http://localhost:8000/api/v1/listings?q=notes&sort=popular"

# Submit (signed in)
curl -X POST http://localhost:8000/api/v1/listings \\
  -H "Authorization: Bearer $TOKEN" -H "Content-Type: application/json" \\
  -d @listing.json
```
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Sign-up, sign-in and token checks",
        },
        {
            "name": "Listings",
            "description": "Browse, submit and edit listings; upvote and interest toggles",
        },
        {
            "name": "Categories",
            "description": "Category reference data",
        },
        {
            "name": "Reports",
            "description": "Report listings and contact the team",
        },
        {
            "name": "Premium",
            "description": "Interest analytics for listing owners",
        },
        {
            "name": "Admin",
            "description": "Moderation (admin role required)",
        },
        {
            "name": "Webhooks",
            "description": "Payment provider callbacks",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Login / dashboard / admin page redirects
app.add_middleware(SessionRedirectMiddleware, api_prefix="/api")


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(DirectoryException)
async def handle_directory_exception(request: Request, exc: DirectoryException):
    """Handle directory exceptions raised outside the workflow layer."""
    return await directory_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_exception(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies and parameters."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Something went wrong. Please try again.",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1/auth",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Category endpoints
app.include_router(
    categories.router,
    prefix="/api/v1/categories",
    tags=["Categories"]
)

# Listing endpoints (browse, submit, edit, toggles)
app.include_router(
    listings.router,
    prefix="/api/v1/listings",
    tags=["Listings"]
)

# Interest analytics endpoints
app.include_router(
    premium.router,
    prefix="/api/v1/listings",
    tags=["Premium"]
)

# Report and contact endpoints
app.include_router(
    reports.router,
    prefix="/api/v1",
    tags=["Reports"]
)

# Moderation endpoints
app.include_router(
    admin.router,
    prefix="/api/v1/admin",
    tags=["Admin"]
)

# Payment webhooks
app.include_router(
    webhooks.router,
    prefix="/api/v1/webhooks",
    tags=["Webhooks"]
)

# Sitemap (site root)
app.include_router(sitemap.router)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "VoiceNative Directory API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }

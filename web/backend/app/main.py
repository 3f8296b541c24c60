"""FastAPI application for the notemod moderation back-office.

Provides REST API endpoints wrapping the notemod package for:
- Staff login / logout
- Browsing the moderation queue (filter, search, paginate)
- Approving, rejecting, and deleting submissions
- Reading the audit trail
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notemod import __version__
from notemod.config import configure_logging
from notemod.errors import NotemodError, PersistenceError, Unauthenticated
from web.backend.app.middleware.auth import get_settings
from web.backend.app.routers import auth, security, submissions

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(get_settings())
    yield


app = FastAPI(
    title="notemod API",
    description=(
        "REST API for the travel-note moderation back-office. "
        "Provides endpoints for staff sessions, the moderation queue, "
        "review actions, and the audit trail."
    ),
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(auth.router)
app.include_router(submissions.router)
app.include_router(security.router)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


@app.exception_handler(NotemodError)
async def notemod_error_handler(request: Request, exc: NotemodError) -> JSONResponse:
    """Translate domain errors into JSON responses with their HTTP status."""
    body = {"error": exc.code, "detail": exc.message}
    headers = None
    if isinstance(exc, Unauthenticated):
        body["redirect"] = LOGIN_PATH
        headers = {"WWW-Authenticate": "Bearer"}
    elif isinstance(exc, PersistenceError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.message)
        body["detail"] = "Storage is temporarily unavailable; no changes were made"
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "notemod API",
        "version": __version__,
        "description": "Travel-note moderation back-office REST API",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}

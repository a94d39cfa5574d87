# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# Usage:
#   uvicorn app.main:app --reload
#
# Route groups:
#   /api/v1/...       REST resources (projects, folders, images, review, ...)
#   /functions/v1/... JSON handlers with the web client's camelCase bodies
#   /ws/projects/{id} change feed for one project
# =============================================================================

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.auth import routes as auth_routes
from app.config import settings
from app.exceptions import (
    StillColabException,
    stillcolab_exception_handler,
    validation_exception_handler,
)
from app.routers import (
    comments,
    folders,
    functions,
    health,
    images,
    marks,
    notifications,
    profiles,
    projects,
    shares,
    votes,
)
from app.websocket import routes as websocket_routes
from app.websocket.listener import relay_project_events

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the Redis -> WebSocket relay for the lifetime of the process."""
    logger.info(f"Starting StillColab API ({settings.ENVIRONMENT})")

    stop = asyncio.Event()
    relay = asyncio.create_task(relay_project_events(stop))

    yield

    logger.info("Stopping StillColab API")
    stop.set()
    relay.cancel()
    try:
        await relay
    except asyncio.CancelledError:
        pass


app = FastAPI(
    title="StillColab API",
    description="""
Collaborative review of stills: upload images into project folders, mark
and comment on them, and share projects with collaborators.

**Uploading**: `POST /functions/v1/upload-image/get-upload-url` (refused when
the file would exceed the storage plan), `PUT` the file to the returned URL,
then `POST /functions/v1/upload-image/save-metadata`.

**Access**: project owners can do everything; collaborators with an
accepted share can upload, organize and review; public projects are
readable by anyone.
""",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

app.add_exception_handler(StillColabException, stillcolab_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

API_PREFIX = "/api/v1"

for module, prefix, tag in (
    (auth_routes, "", "Auth"),
    (health, "", "Health"),
    (projects, "/projects", "Projects"),
    (folders, "/folders", "Folders"),
    (images, "/images", "Images"),
    (comments, "/comments", "Comments"),
    (marks, "/marks", "Marks"),
    (shares, "/shares", "Shares"),
    (profiles, "/profiles", "Profiles"),
    (notifications, "/notifications", "Notifications"),
    (votes, "/votes", "Votes"),
):
    app.include_router(module.router, prefix=f"{API_PREFIX}{prefix}", tags=[tag])

app.include_router(functions.router, prefix="/functions/v1", tags=["Functions"])
app.include_router(websocket_routes.router, tags=["WebSocket"])


@app.get("/", tags=["Root"])
async def root():
    return {
        "name": "StillColab API",
        "version": API_VERSION,
        "docs": "/docs",
        "health": f"{API_PREFIX}/health",
    }

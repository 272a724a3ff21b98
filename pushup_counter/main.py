"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pushup_counter.config import get_settings
from pushup_counter.api import api_router
from pushup_counter.cv.session import SessionManager

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting {settings.app_name}")
    app.state.session_manager = SessionManager(settings)
    yield
    logger.info(
        f"Shutting down {settings.app_name} "
        f"({app.state.session_manager.active_count} active sessions)"
    )
    app.state.session_manager.clear()


app = FastAPI(
    title=settings.app_name,
    description="""
    Push-up Rep Counter API

    Counts push-up repetitions in real time from a stream of 2D body-pose
    estimates produced by the client (MediaPipe, ML Kit, MoveNet, ...).

    ## Flow

    1. `POST /sessions` to start a session
    2. `POST /sessions/{id}/frames` once per frame with the detected landmarks
    3. Render the returned rep count, phase and feedback
    4. `POST /sessions/{id}/reset` to zero the counter, `DELETE` when done

    Frames with missing upper body or hips are not errors: the session drops
    to `not_in_position` and explains why in the feedback.
    """,
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report validation errors without echoing the input back.

    A rejected NaN or Infinity coordinate cannot be written into a JSON response.
    """
    errors = [
        {key: value for key, value in error.items() if key != "input"}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(errors)},
    )


# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": "1.0.0"
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "health": "/health"
    }

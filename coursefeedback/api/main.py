"""
Course Feedback API - FastAPI backend for the feedback form and dashboard.

Provides REST endpoints for:
- Submitting feedback
- Listing the latest feedback
- Health checks
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from coursefeedback import __version__
from coursefeedback.config import (
    API_HOST,
    API_PORT,
    DEBUG,
    DEFAULT_LATEST_LIMIT,
    LOG_LEVEL,
    MAX_LATEST_LIMIT,
    SEED_ON_STARTUP,
)
from coursefeedback.feedback.errors import PersistenceError, ValidationError
from coursefeedback.feedback.service import FeedbackService


logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models for Responses
# =============================================================================

class FeedbackRecord(BaseModel):
    """A stored feedback record."""
    id: str
    name: str
    email: Optional[str] = None
    course: str
    rating: int
    comments: str
    submitted_at: str


class SubmitResponse(BaseModel):
    """Response from a feedback submission."""
    success: bool
    id: str
    record: FeedbackRecord


class LatestResponse(BaseModel):
    """Response listing the latest feedback."""
    success: bool
    items: list[FeedbackRecord]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    backend: str
    error: Optional[str] = None


# =============================================================================
# Application Setup
# =============================================================================

def create_app(service: Optional[FeedbackService] = None, seed: bool = SEED_ON_STARTUP) -> FastAPI:
    """
    Build the API application.

    Args:
        service: Service to use. When omitted one is created from config at
            startup and closed at shutdown.
        seed: Insert the sample record into an empty store at startup
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = service is None
        app.state.feedback_service = service or FeedbackService()
        logger.info(f"Feedback backend: {app.state.feedback_service.backend!r}")

        if seed:
            await app.state.feedback_service.seed_sample_data()

        yield

        if owned:
            app.state.feedback_service.close()
        app.state.feedback_service = None
        logger.info("Course Feedback API shutdown complete")

    app = FastAPI(
        title="Course Feedback API",
        description="Submit course feedback and list the most recent submissions.",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware for frontend access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(PersistenceError, persistence_error_handler)
    _register_routes(app)
    return app


# =============================================================================
# Helper Functions
# =============================================================================

def get_service(request: Request) -> FeedbackService:
    """Get the service instance or raise an error."""
    service = getattr(request.app.state, "feedback_service", None)
    if service is None:
        raise HTTPException(
            status_code=503,
            detail="Feedback service not initialized. Check server logs.",
        )
    return service


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"success": False, "errors": exc.errors},
    )


async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=503,
        content={"success": False, "error": exc.cause},
    )


# =============================================================================
# API Endpoints
# =============================================================================

def _register_routes(app: FastAPI):

    @app.get("/", tags=["Info"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Course Feedback API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    @app.get("/health", response_model=HealthResponse, response_model_exclude_none=True, tags=["Info"])
    async def health_check(request: Request):
        """Check that the feedback backend can be read."""
        return await get_service(request).health_check()

    @app.post(
        "/api/feedback",
        response_model=SubmitResponse,
        response_model_exclude_none=True,
        status_code=201,
        tags=["Feedback"],
    )
    async def submit_feedback(request: Request, payload: dict[str, Any] = Body(...)):
        """
        Submit new feedback.

        Body: name, course, rating (1-5), comments, and optional email.
        Returns the stored record including its generated id and timestamp.
        """
        result = await get_service(request).submit_feedback(payload)
        return result.to_dict()

    @app.get(
        "/api/feedback/latest",
        response_model=LatestResponse,
        response_model_exclude_none=True,
        tags=["Feedback"],
    )
    async def latest_feedback(
        request: Request,
        limit: int = Query(
            default=DEFAULT_LATEST_LIMIT,
            description="Number of entries to return",
            ge=0,
            le=MAX_LATEST_LIMIT,
        ),
    ):
        """Get the most recent feedback, newest first."""
        result = await get_service(request).get_latest_feedback(limit)
        return result.to_dict()


app = create_app()


# =============================================================================
# Run with Uvicorn
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    logger.info(f"Starting Course Feedback API on {API_HOST}:{API_PORT}")
    logger.info(f"Documentation: http://localhost:{API_PORT}/docs")

    uvicorn.run(
        "coursefeedback.api.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=DEBUG,
    )

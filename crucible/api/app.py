"""
FastAPI Application - REST API for progress storage.

Endpoints:
    GET    /api/v1/health      Health check
    GET    /api/v1/init        Stored progress for the calling user
    POST   /api/v1/progress    Replace stored progress for the calling user

The calling user is taken from the X-User-Id header (X-Username is
echoed back on init). Requests without a user id are served empty
progress and their saves are accepted and dropped.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional, Union
import os

from fastapi import FastAPI, Header, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import get_default_data_dir
from ..logging_config import get_logger
from ..sync.storage import FileStore, MemoryStore
from .schemas import (
    ErrorCode,
    ErrorResponse,
    HealthResponse,
    InitResponse,
    SaveProgressRequest,
    SaveProgressResponse,
)
from .service import ProgressService

logger = get_logger(__name__)

# Environment configuration
CRUCIBLE_ENV = os.getenv("CRUCIBLE_ENV", "development")
CRUCIBLE_DATA_DIR = os.getenv("CRUCIBLE_DATA_DIR", None)
CRUCIBLE_REALM = os.getenv("CRUCIBLE_REALM", "default")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def create_app(service: Optional[ProgressService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional ProgressService instance. When omitted, progress
            is kept in files under CRUCIBLE_DATA_DIR, or in memory in
            development.

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Crucible Progress API",
        description="""
Progress storage for the Crucible element-combination sandbox.

## Identity

Send `X-User-Id` (and optionally `X-Username`) on every request.
Without a user id, init returns empty progress and saves are no-ops.

## Error Codes

| Code | Description |
|------|-------------|
| `PAYLOAD_TOO_LARGE` | Serialized progress exceeds the storage ceiling |
| `VALIDATION_ERROR` | Request body did not match the schema |
| `INTERNAL_ERROR` | Unexpected server failure |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if service is None:
        if CRUCIBLE_DATA_DIR or CRUCIBLE_ENV == "production":
            data_dir = CRUCIBLE_DATA_DIR or get_default_data_dir()
            store = FileStore(os.path.join(data_dir, "server"))
        else:
            store = MemoryStore()
        service = ProgressService(store=store, realm=CRUCIBLE_REALM)
    progress_service = service
    app.state.progress_service = progress_service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Request did not match the schema",
            status_code=422,
            details={"errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return make_error_response(ErrorCode.INTERNAL_ERROR, "Internal server error", status_code=500)

    # =========================================================================
    # Progress Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/init",
        response_model=InitResponse,
        tags=["Progress"],
        summary="Fetch stored progress",
    )
    async def init(
        x_user_id: Annotated[Optional[str], Header(description="Caller's user id")] = None,
        x_username: Annotated[Optional[str], Header(description="Caller's display name")] = None,
    ) -> InitResponse:
        """
        Stored discoveries and table for the calling user.

        Unknown or anonymous users get empty progress.
        """
        return progress_service.init(x_user_id, x_username)

    @app.post(
        "/api/v1/progress",
        response_model=SaveProgressResponse,
        responses={413: {"model": ErrorResponse, "description": "Progress too large to store"}},
        tags=["Progress"],
        summary="Save progress",
    )
    async def save_progress(
        request: SaveProgressRequest,
        x_user_id: Annotated[Optional[str], Header(description="Caller's user id")] = None,
    ) -> Union[SaveProgressResponse, JSONResponse]:
        """
        Replace stored progress for the calling user.

        Only the most recent tokens are kept. Records over the size
        ceiling are refused and nothing is written.
        """
        response = progress_service.save_progress(x_user_id, request)
        if not response.success:
            return make_error_response(
                ErrorCode.PAYLOAD_TOO_LARGE,
                "Progress too large to store",
                status_code=413,
                details={
                    "size_bytes": response.size_bytes,
                    "max_bytes": progress_service.max_bytes,
                },
            )
        return response

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="ok",
            version=__version__,
            environment=CRUCIBLE_ENV,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Crucible Progress API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/api/v1/health",
        }

    logger.debug("Progress API created (env=%s, realm=%s)", CRUCIBLE_ENV, progress_service.realm)
    return app


# For running directly: uvicorn crucible.api.app:app
app = create_app()

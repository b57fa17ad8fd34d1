"""
Redline Document Comparison Service - Main Application

FastAPI application for section-aware comparison of PDF documents.
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from redline.api.routes import router as api_router
from redline.core.config import get_settings
from redline.core.logging import bind_log_context, clear_log_context, configure_logging, get_logger
from redline.services.comparison_service import ComparisonError
from redline.services.report_service import ReportGenerationError

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Get settings
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(
        "application_starting",
        app_name=settings.api_title,
        version=settings.api_version,
        debug=settings.debug
    )

    yield

    # Shutdown
    logger.info("application_shutting_down")


# Create FastAPI app
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="""
    A service for comparing two versions of a PDF document.

    ## Features

    * **Text Normalization**: Repairs ligatures and broken words left by PDF extraction
    * **Section Alignment**: Detects headings and pairs sections across both versions
    * **Page-Aware Diff**: Line-level changes with page numbers on both sides
    * **Severity Scoring**: Flags legal, numeric and large changes
    * **Narratives**: Optional LLM summaries with deterministic fallbacks
    * **PDF Reports**: Export any result as a PDF report

    ## Workflow

    1. **Compare**: POST two PDFs to `/api/v1/compare` for an immediate result
    2. **Or submit**: POST to `/api/v1/compare/async` and poll `/api/v1/jobs/{job_id}`
    3. **Retrieve**: Get results from `/api/v1/results/{job_id}`
    4. **Export**: POST a result to `/api/v1/export` for a PDF report
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=settings.debug
)

# Add CORS middleware
if settings.enable_cors:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("cors_enabled", allowed_origins=settings.allowed_origins)

# Include API routes
app.include_router(
    api_router,
    prefix="/api/v1",
    tags=["Document Comparison"]
)


@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": settings.api_title,
        "version": settings.api_version,
        "status": "running",
        "docs": "/docs",
        "health": "/api/v1/health"
    }


@app.middleware("http")
async def bind_request_context(request: Request, call_next):
    """Give every event logged for a request the same request id."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    clear_log_context()
    bind_log_context(request_id=request_id, method=request.method, path=request.url.path)

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(ComparisonError)
async def comparison_error_handler(request: Request, exc: ComparisonError):
    """A pipeline stage failed on otherwise valid documents."""
    logger.error("comparison_request_failed", path=request.url.path, error=str(exc))

    return JSONResponse(
        status_code=500,
        content={"detail": "The documents could not be compared.", "type": type(exc).__name__}
    )


@app.exception_handler(ReportGenerationError)
async def report_error_handler(request: Request, exc: ReportGenerationError):
    """Rendering the PDF report failed."""
    logger.error("report_request_failed", path=request.url.path, error=str(exc))

    return JSONResponse(
        status_code=500,
        content={"detail": "The report could not be generated.", "type": type(exc).__name__}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "An internal error occurred. Please try again later.",
            "type": type(exc).__name__
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "redline.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )

"""
Agente de Saúde IA - health case analysis API

Receives batches of reported health cases, groups them by disease and
neighborhood and asks a language model for mitigation recommendations.

This API provides:
- Static entry page for submitting cases
- Case analysis relayed to an OpenAI-compatible model
- Placeholder recommendations while the upstream quota is exhausted
- Structured logging with per-request context
"""

import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.config import Settings, get_settings
from config.logging_config import configure_logging, get_logger, log_request_context
from models.models import (
    AnalysisRequest,
    AnalysisResponse,
    ErrorResponse,
    HealthResponse,
    HealthStatus,
)
from services.analysis_service import AnalysisService, GatewayFailureError, get_analysis_service

# Configure logging before anything else
configure_logging()
logger = get_logger(__name__)

INVALID_FORMAT_MESSAGE = "Formato inválido. Envie um array de dados."
GATEWAY_ERROR_MESSAGE = "Erro ao consultar a API OpenAI"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events with proper logging.
    """
    settings: Settings = app.state.settings

    logger.info(
        "Application starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        config=settings.get_safe_config_dict(),
    )
    if not settings.llm_configured:
        logger.warning("OPENAI_API_KEY or OPENAI_MODEL not set, analyses will fail")

    yield

    logger.info("Application shutting down")


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Optional settings override for testing.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=__doc__,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing and context."""
        request_id = str(uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        log_request_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)

        processing_time = int((time.perf_counter() - start_time) * 1000)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time-Ms"] = str(processing_time)

        logger.info(
            "Request completed",
            status_code=response.status_code,
            processing_time_ms=processing_time,
        )

        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Reject malformed bodies before any downstream work."""
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ]
        logger.info("Invalid request body", errors=len(errors))
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error="VALIDATION_ERROR",
                message=INVALID_FORMAT_MESSAGE,
                details={"errors": errors},
                request_id=_request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(GatewayFailureError)
    async def gateway_exception_handler(request: Request, exc: GatewayFailureError):
        """Surface upstream failures with their status and message."""
        logger.error(
            "Model gateway failure",
            upstream_status=exc.status_code,
            error=exc.message,
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="GATEWAY_ERROR",
                message=GATEWAY_ERROR_MESSAGE,
                details={
                    "upstream_status": exc.status_code,
                    "upstream_message": exc.message,
                },
                request_id=_request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions with structured response."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=f"HTTP_{exc.status_code}",
                message=str(exc.detail),
                request_id=_request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.exception("Unhandled exception", error=str(exc))
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                message="An unexpected error occurred",
                request_id=_request_id(request),
            ).model_dump(mode="json"),
        )

    register_routes(app)

    if settings.static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")
    else:
        logger.warning("Static directory not found", static_dir=str(settings.static_dir))

    return app


def register_routes(app: FastAPI) -> None:
    """Register all API routes."""

    @app.get("/", include_in_schema=False)
    async def index(request: Request) -> FileResponse:
        """Serve the entry page."""
        settings: Settings = request.app.state.settings
        index_path = settings.static_dir / "index.html"
        if not index_path.is_file():
            raise HTTPException(status_code=404, detail="index.html not found")
        return FileResponse(index_path)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request) -> HealthResponse:
        """
        Health check endpoint for monitoring.

        Reports whether the model credential and model id are configured.
        """
        settings: Settings = request.app.state.settings
        checks = {
            "openai_api_key_configured": bool(settings.openai_api_key),
            "openai_model_configured": bool(settings.openai_model),
        }

        if all(checks.values()):
            status = HealthStatus.HEALTHY
        elif any(checks.values()):
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.UNHEALTHY

        return HealthResponse(
            status=status,
            version=settings.app_version,
            environment=settings.environment,
            checks=checks,
        )

    @app.post(
        "/analise",
        response_model=AnalysisResponse,
        response_model_exclude_none=True,
        responses={
            400: {"model": ErrorResponse, "description": "dados is not an array of records"},
            500: {"model": ErrorResponse, "description": "Upstream model failure"},
        },
        tags=["Analysis"],
    )
    async def analise(
        request: AnalysisRequest,
        service: AnalysisService = Depends(get_analysis_service),
    ) -> AnalysisResponse:
        """
        Analyse a batch of reported cases.

        Cases are grouped by disease and neighborhood and the model is asked
        for the two most affected combinations, their probable cause, a
        mitigation action and the expected reduction.

        The response carries `recomendacoes` when the model answered with
        the expected JSON, `raw` with its text otherwise.
        """
        logger.info("Analysis request received", records=len(request.dados))
        return await service.analyze(request.dados)


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )

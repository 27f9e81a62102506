"""
Visit Engine - FastAPI Main Application
"""

import time
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.responses import Response

from visit_engine.config import Settings, settings
from visit_engine.core.exceptions import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    VisitEngineError,
)
from visit_engine.core.logging import get_logger, setup_logging
from visit_engine.core.metrics import request_count, request_duration
from visit_engine.models.responses import (
    ActionItemListResponse,
    ErrorResponse,
    HealthCheckResponse,
    RateLimitResponse,
    VisitResponse,
)
from visit_engine.models.summary import EnrichedSummary
from visit_engine.models.visit import AudioArtifact, VisitTranscript, new_id, utcnow
from visit_engine.services.audio_processor import AudioProcessor
from visit_engine.services.interactions import MedicationInteractionEngine
from visit_engine.services.llm_service import LLMService, build_openai_client
from visit_engine.services.normalizer import MedicalTermNormalizer
from visit_engine.services.orchestrator import VisitOrchestrator
from visit_engine.services.repositories import (
    InMemoryActionItemRepository,
    InMemoryBlobStore,
    InMemoryProfileRepository,
    InMemoryVisitRepository,
)
from visit_engine.services.stt_service import ProviderTranscriptionBackend, TranscriptionService
from visit_engine.services.summarizer import SummarizationService

# Initialize logging
setup_logging()
logger = get_logger(__name__)

# Rate limiter
limiter = Limiter(key_func=get_remote_address)

START_TIME = time.time()

ERROR_RESPONSES = {
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    429: {"model": RateLimitResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def build_orchestrator(config: Settings = settings) -> VisitOrchestrator:
    """Wires the pipeline services from configuration."""
    openai_client = build_openai_client(config)
    llm_service = LLMService(client=openai_client, config=config)
    audio_processor = AudioProcessor(config)

    transcriber = TranscriptionService(
        ProviderTranscriptionBackend(openai_client, config),
        models=config.transcription_models,
        timeout=config.stt_timeout,
        audio_processor=audio_processor,
    )
    interactions = MedicationInteractionEngine(
        advisor=llm_service if openai_client is not None else None,
        advisor_timeout=config.interaction_check_timeout,
    )

    return VisitOrchestrator(
        visits=InMemoryVisitRepository(),
        profiles=InMemoryProfileRepository(),
        action_items=InMemoryActionItemRepository(),
        transcriber=transcriber,
        summarizer=SummarizationService(llm_service, timeout=config.llm_timeout),
        normalizer=MedicalTermNormalizer(),
        interactions=interactions,
        audio_processor=audio_processor,
        blob_store=InMemoryBlobStore(),
        default_language=config.default_language,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info("Visit Engine starting...")
    logger.info(f"Environment: {settings.environment.value}")
    logger.info(f"Transcription models: {', '.join(settings.transcription_models)}")
    if getattr(app.state, "orchestrator", None) is None:
        app.state.orchestrator = build_orchestrator(settings)

    yield

    # Shutdown
    logger.info("Visit Engine shutting down...")
    await app.state.orchestrator.shutdown()


# Create FastAPI app
app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url="/redoc" if settings.environment == "development" else None,
    debug=settings.debug,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Rate limiting
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


# --- Dependencies ---

def get_orchestrator(request: Request) -> VisitOrchestrator:
    return request.app.state.orchestrator


async def get_owner_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
    """Caller identity, set by the upstream gateway after authentication."""
    if not x_user_id or not x_user_id.strip():
        raise UnauthorizedError("Missing X-User-Id header")
    return x_user_id.strip()


# Middleware for security headers
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)
    response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    return response


# Middleware for request tracking and metrics
@app.middleware("http")
async def track_requests(request: Request, call_next):
    """Request tracking and Prometheus metrics"""

    start_time = time.time()
    request_id = new_id()
    request.state.request_id = request_id

    try:
        response = await call_next(request)
    except Exception as e:
        request_count.labels(method=request.method, endpoint=request.url.path, status=500).inc()
        logger.error(f"Request {request_id} failed: {e}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="internal_server_error",
                message="An internal error occurred",
                request_id=request_id,
                timestamp=utcnow(),
            ).model_dump(mode="json"),
            headers={"X-Request-ID": request_id},
        )

    duration = time.time() - start_time
    request_count.labels(method=request.method, endpoint=request.url.path, status=response.status_code).inc()
    request_duration.observe(duration)

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Processing-Time"] = f"{duration:.3f}s"
    return response


# --- Health and metrics ---

@app.get("/health", response_model=HealthCheckResponse)
async def health_check(detailed: bool = False):
    """Service health check"""
    details = None
    if detailed:
        details = {
            "environment": settings.environment.value,
            "transcription_models": settings.transcription_models,
            "summary_model": settings.summary_model,
            "openai_configured": bool(settings.openai_api_key),
        }

    return HealthCheckResponse(
        status="healthy",
        timestamp=utcnow(),
        version=settings.api_version,
        uptime_seconds=int(time.time() - START_TIME),
        details=details,
    )


@app.get(settings.metrics_path)
async def metrics():
    """Prometheus metrics"""
    if not settings.enable_metrics:
        raise HTTPException(status_code=404, detail="Metrics disabled")

    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


# --- Visits ---

@app.post(
    "/v1/visits",
    response_model=VisitResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_visit(
    owner_id: str = Depends(get_owner_id),
    orchestrator: VisitOrchestrator = Depends(get_orchestrator),
):
    visit = await orchestrator.create_visit(owner_id)
    return VisitResponse.from_visit(visit)


@app.post(
    "/v1/visits/{visit_id}/audio",
    response_model=VisitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses=ERROR_RESPONSES,
)
@limiter.limit(f"{settings.rate_limit_requests}/minute")
async def upload_visit_audio(
    request: Request,
    visit_id: str,
    owner_id: str = Depends(get_owner_id),
    orchestrator: VisitOrchestrator = Depends(get_orchestrator),
    audio_file: UploadFile = File(..., alias="file"),
    profile_context: Optional[str] = Form(None),
    language: Optional[str] = Form(None),
):
    """
    Attaches the recording to a visit and starts processing in the background.
    Poll GET /v1/visits/{visit_id} until the status is COMPLETED or FAILED.
    """
    if language and language not in settings.supported_languages:
        raise ValidationError(
            f"Unsupported input language '{language}'. Supported are: {', '.join(settings.supported_languages)}"
        )

    audio = AudioArtifact(
        data=await audio_file.read(),
        content_type=audio_file.content_type,
        file_name=audio_file.filename,
    )
    visit = await orchestrator.begin_processing(
        visit_id,
        audio,
        profile_context=profile_context,
        owner_id=owner_id,
        language=language,
    )
    logger.info(f"[{getattr(request.state, 'request_id', None)}] Visit {visit_id} accepted for processing")
    return VisitResponse.from_visit(visit)


@app.get("/v1/visits/{visit_id}", response_model=VisitResponse, responses=ERROR_RESPONSES)
async def get_visit(
    visit_id: str,
    owner_id: str = Depends(get_owner_id),
    orchestrator: VisitOrchestrator = Depends(get_orchestrator),
):
    visit = await orchestrator.get_visit(visit_id, owner_id)
    return VisitResponse.from_visit(visit)


@app.get("/v1/visits/{visit_id}/summary", response_model=EnrichedSummary, responses=ERROR_RESPONSES)
async def get_visit_summary(
    visit_id: str,
    owner_id: str = Depends(get_owner_id),
    orchestrator: VisitOrchestrator = Depends(get_orchestrator),
):
    return await orchestrator.get_summary(visit_id, owner_id)


@app.get("/v1/visits/{visit_id}/transcript", response_model=VisitTranscript, responses=ERROR_RESPONSES)
async def get_visit_transcript(
    visit_id: str,
    owner_id: str = Depends(get_owner_id),
    orchestrator: VisitOrchestrator = Depends(get_orchestrator),
):
    return await orchestrator.get_transcript(visit_id, owner_id)


@app.get("/v1/visits/{visit_id}/action-items", response_model=ActionItemListResponse, responses=ERROR_RESPONSES)
async def list_visit_action_items(
    visit_id: str,
    owner_id: str = Depends(get_owner_id),
    orchestrator: VisitOrchestrator = Depends(get_orchestrator),
):
    items = await orchestrator.list_action_items(visit_id, owner_id)
    return ActionItemListResponse(visit_id=visit_id, action_items=items)


# --- Error handlers ---

def status_code_for(exc: VisitEngineError) -> int:
    if isinstance(exc, ConflictError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, UnauthorizedError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, ExternalServiceError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(VisitEngineError)
async def visit_engine_error_handler(request: Request, exc: VisitEngineError):
    status_code = status_code_for(exc)
    request_id = getattr(request.state, "request_id", None)
    if status_code >= 500:
        logger.error(f"Request {request_id} failed: {exc.message}", error_code=exc.error_code)

    response = ErrorResponse(
        error=exc.error_code,
        message=exc.message,
        details=exc.details or None,
        request_id=request_id,
        timestamp=utcnow(),
    )
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Custom rate limit error handler"""
    retry_after = settings.rate_limit_window
    response = RateLimitResponse(
        message="Too many requests. Please try again later.",
        retry_after=retry_after,
        limit=settings.rate_limit_requests,
        window=settings.rate_limit_window,
        timestamp=utcnow(),
    )

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=response.model_dump(mode="json"),
        headers={"Retry-After": str(retry_after)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors"""

    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(f"Unhandled error in request {request_id}: {exc}")
    logger.error(f"Stacktrace: {traceback.format_exc()}")

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="internal_server_error",
            message="An unexpected error occurred",
            request_id=request_id,
            timestamp=utcnow(),
        ).model_dump(mode="json"),
        headers={"X-Request-ID": request_id},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "visit_engine.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
    )

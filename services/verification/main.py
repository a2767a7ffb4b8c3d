"""
Verification Service - Main Application
========================================

FastAPI application for clearance role proof generation and verification.

Version: 0.1.0
"""

import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rolezk.config import StoreBackend, settings
from rolezk.database import RedisClient
from rolezk.logging import bind_context, clear_context, get_logger, setup_logging
from rolezk.models import ErrorResponse, HealthResponse
from rolezk.zk import (
    InsufficientClearanceError,
    InvalidClearanceError,
    NullifierPruner,
    ProofGenerationError,
    RoleProofError,
    get_nullifier_store,
)
from services.verification.routes import proofs, verification


# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="verification",
)

logger = get_logger(__name__)

_ROLE_PROOF_STATUS: dict[type[RoleProofError], int] = {
    InsufficientClearanceError: status.HTTP_403_FORBIDDEN,
    InvalidClearanceError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ProofGenerationError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "verification_service_starting",
        environment=settings.environment.value,
        port=settings.ports.verification,
        store_backend=settings.proof.store_backend.value,
    )

    store = get_nullifier_store()
    pruner = NullifierPruner(store, settings.proof.prune_interval_seconds)
    pruner.start()

    yield

    logger.info("verification_service_shutting_down")
    await pruner.stop()
    if store.backend == StoreBackend.REDIS:
        await RedisClient.close()


app = FastAPI(
    title="ROLEZK Verification Service",
    description="Clearance role proofs: generation, verification and replay protection",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next: Any) -> Any:
    """Bind a request ID to every log entry of the request."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    clear_context()
    bind_context(request_id=request_id)

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Returns health status of the service and its nullifier store.
    """
    components: dict[str, dict[str, Any]] = {
        "nullifier_store": await get_nullifier_store().health_check(),
    }

    all_healthy = all(c.get("status") == "healthy" for c in components.values())

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service="verification",
        version="0.1.0",
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "ROLEZK Verification Service",
        "version": "0.1.0",
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    proofs.router,
    prefix="/api/v1/proofs",
    tags=["Role Proofs"],
)

app.include_router(
    verification.router,
    prefix="/api/v1/verify",
    tags=["Verification"],
)


# ============================================================================
# Error Handlers
# ============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail),
            status_code=exc.status_code,
        ).model_dump(mode="json"),
        headers=exc.headers,
    )


@app.exception_handler(RoleProofError)
async def role_proof_exception_handler(request: Request, exc: RoleProofError) -> JSONResponse:
    """Render proof generation refusals and failures."""
    status_code = _ROLE_PROOF_STATUS.get(type(exc), status.HTTP_503_SERVICE_UNAVAILABLE)
    # Failure details stay in the log
    message = str(exc) if status_code < 500 else "Proof generation failed; retry"

    log = logger.error if status_code >= 500 else logger.info
    log(
        "role_proof_request_failed",
        error_code=exc.code,
        status_code=status_code,
        error=str(exc),
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=message,
            error_code=exc.code,
            status_code=status_code,
        ).model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        ).model_dump(mode="json"),
    )


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.verification.main:app",
        host="0.0.0.0",
        port=settings.ports.verification,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )

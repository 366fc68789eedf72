"""FastAPI application factory for ScholarFund."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scholarfund.common.config import get_settings
from scholarfund.common.exceptions import AuditRecordingError, StoreUnavailableError
from scholarfund.common.logging import get_logger, setup_logging
from scholarfund.common.schemas import HealthResponse, error_detail

logger = get_logger("app")


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from scholarfund.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        logger.info("ScholarFund started", extra={"context": {"environment": settings.environment}})
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable(request: Request, exc: StoreUnavailableError):
        logger.error("Store unavailable on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=503, content={"detail": error_detail(exc)})

    @app.exception_handler(AuditRecordingError)
    async def audit_failure(request: Request, exc: AuditRecordingError):
        logger.error("Audit write rejected %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": error_detail(exc)})

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from scholarfund.identity.router import router as identity_router
    from scholarfund.registry.router import router as registry_router
    from scholarfund.ledger.router import router as ledger_router
    from scholarfund.scholarships.router import router as scholarship_router
    from scholarfund.audit.router import router as audit_router

    prefix = settings.api_prefix
    app.include_router(identity_router, prefix=prefix, tags=["identity"])
    app.include_router(registry_router, prefix=prefix, tags=["registry"])
    app.include_router(ledger_router, prefix=prefix, tags=["ledger"])
    app.include_router(scholarship_router, prefix=prefix, tags=["scholarships"])
    app.include_router(audit_router, prefix=prefix, tags=["audit"])

    return app

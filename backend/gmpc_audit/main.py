"""
GMPC Audit API — application factory

  /api/v1/audits      run one audit (multipart upload or demo text)
  /api/v1/equipment   equipment registry CRUD + reset
  /api/v1/settings    provider settings (key masked on read)
  /api/v1/demo        demo documents
  /health             liveness

Error contract: every non-2xx body is an ErrorResponse. Audit pipeline
errors are translated in one handler through AuditErrors.status_for, so the
routers never build error responses for them.

Each response carries X-Request-ID (echoed from the request when present)
and produces one access-log line.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gmpc_audit.api.v1.audits import router as audits_router
from gmpc_audit.api.v1.configuration import router as configuration_router
from gmpc_audit.core.config import settings
from gmpc_audit.core.exceptions import AuditError
from gmpc_audit.schemas.errors import AuditErrors

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Startup | env=%s default_provider=%s env_key_set=%s config_store=%s timeout_s=%.0f",
        settings.app_env, settings.default_provider, bool(settings.api_key),
        settings.config_store_path, settings.llm_timeout_seconds,
    )
    yield
    logger.info("Shutdown | gmpc-audit-api")


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _register_middleware(app: FastAPI) -> None:
    if settings.app_env == "development":
        # the audit UI is served from a separate dev server
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "PUT"],
            allow_headers=["Content-Type", "X-Request-ID"],
            expose_headers=["X-Request-ID"],
        )

    @app.middleware("http")
    async def tag_and_log(request: Request, call_next):
        request.state.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        t0 = time.perf_counter()

        response = await call_next(request)

        response.headers["X-Request-ID"] = request.state.request_id
        logger.info(
            "Access | %s %s status=%d elapsed_ms=%.1f",
            request.method, request.url.path, response.status_code,
            (time.perf_counter() - t0) * 1000,
        )
        return response


def _register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(AuditError)
    async def on_audit_error(request: Request, exc: AuditError):
        status_code = AuditErrors.status_for(exc)
        logger.warning(
            "Audit failed | error_code=%s status=%d request_id=%s detail=%s",
            exc.error_code, status_code, _request_id(request), exc.message,
        )
        body = AuditErrors.from_audit_error(exc, request_id=_request_id(request))
        return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))

    @app.exception_handler(RequestValidationError)
    async def on_validation_error(request: Request, exc: RequestValidationError):
        body = AuditErrors.validation_failed(exc.errors(), request_id=_request_id(request))
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=body.model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def on_unexpected_error(request: Request, exc: Exception):
        request_id = _request_id(request) or uuid.uuid4().hex
        logger.exception("Unexpected error | path=%s request_id=%s", request.url.path, request_id)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=AuditErrors.internal_error(request_id).model_dump(mode="json"),
            headers={"X-Request-ID": request_id},
        )


def create_app() -> FastAPI:
    show_docs = not settings.is_production
    app = FastAPI(
        title="GMPC Production Record Audit",
        description=(
            "LLM audit of cosmetics batching sheets and process records, optionally "
            "cross-checked against the regulatory filing."
        ),
        version="1.0.0",
        docs_url=f"{API_PREFIX}/docs" if show_docs else None,
        redoc_url=None,
        openapi_url=f"{API_PREFIX}/openapi.json" if show_docs else None,
        lifespan=lifespan,
    )

    _register_middleware(app)
    _register_exception_handlers(app)

    app.include_router(audits_router, prefix=API_PREFIX)
    app.include_router(configuration_router, prefix=API_PREFIX)

    @app.get("/health", tags=["Operations"], summary="Process is up")
    async def health() -> dict:
        return {"status": "ok", "service": "gmpc-audit-api"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "gmpc_audit.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.app_env == "development",
        log_level="debug" if settings.debug else "info",
    )

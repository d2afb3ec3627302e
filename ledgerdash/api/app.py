"""
REST API

FastAPI application over the domain services. JSON bodies use
camelCase keys; money travels as decimal strings.

Errors map to status codes in one place:
    ValidationError (and malformed requests) -> 400
    NotFoundError                            -> 404
    ConflictError                            -> 409
    anything else                            -> 500, audit-logged
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ledgerdash import __version__
from ledgerdash.api.routes import accounts, business, cards, ledger, reports
from ledgerdash.orchestrator import AppComponents, create_app_components
from ledgerdash.validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    issues_from_errors,
)


logger = structlog.get_logger()


def _register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        error = ValidationError("Invalid data", issues_from_errors(exc.errors()))
        return JSONResponse(status_code=400, content=error.to_dict())

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return JSONResponse(status_code=409, content={"message": str(exc)})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        components: Optional[AppComponents] = getattr(request.app.state, "components", None)
        if components is not None:
            components.audit_logger.log_error(
                error_type=type(exc).__name__,
                error_message=str(exc),
                details={"method": request.method, "path": request.url.path},
            )
        else:
            logger.error("unhandled_error", error=str(exc), path=request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(components: Optional[AppComponents] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        components: Pre-built component graph (tests pass one backed by
                    an in-memory database). Built from settings if omitted.
    """
    app = FastAPI(title="LedgerDash", version=__version__)
    app.state.components = components or create_app_components()

    _register_error_handlers(app)

    for module in (accounts, ledger, cards, reports, business):
        app.include_router(module.router, prefix="/api")

    @app.get("/health")
    def health():
        database_ok = app.state.components.database.is_reachable()
        return {"status": "ok" if database_ok else "degraded", "database": database_ok}

    return app

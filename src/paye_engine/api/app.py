"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from paye_engine.api.routes import health_router, payroll_router, tax_years_router
from paye_engine.calculators.validation import PayrollInputError
from paye_engine.config import get_settings
from paye_engine.database import dispose_db, init_db
from paye_engine.tables.loader import load_tax_year_tables
from paye_engine.tables.types import TaxTablesError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings = get_settings()
    # Startup
    if settings.tax_tables_source == "database":
        init_db()
    else:
        load_tax_year_tables(settings.default_tax_year)
    logger.info(
        "PAYE engine %s started (tables: %s, default tax year %s)",
        settings.engine_version,
        settings.tax_tables_source,
        settings.default_tax_year,
    )
    yield
    # Shutdown
    await dispose_db()


def _field_name(loc: tuple) -> str:
    # Drop the leading "body"/"query"/"path" segment
    parts = [str(part) for part in loc[1:]] if len(loc) > 1 else [str(part) for part in loc]
    return ".".join(parts)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title="PAYE Engine API",
        description="UK PAYE payroll calculation: income tax, NI, student loan and pension",
        version=settings.engine_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollInputError)
    async def payroll_input_error_handler(
        request: Request, exc: PayrollInputError
    ) -> JSONResponse:
        """Field errors from the engine's validator."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": "Invalid payroll input",
                "code": "VALIDATION_ERROR",
                "details": [
                    {"field": name, "message": message}
                    for name, message in sorted(exc.errors.items())
                ],
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request bodies and parameters."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": "Invalid request",
                "code": "VALIDATION_ERROR",
                "details": [
                    {"field": _field_name(tuple(error["loc"])), "message": error["msg"]}
                    for error in exc.errors()
                ],
            },
        )

    @app.exception_handler(TaxTablesError)
    async def tax_tables_error_handler(
        request: Request, exc: TaxTablesError
    ) -> JSONResponse:
        """Unknown tax year or unusable tables."""
        logger.warning("Tax tables error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": str(exc),
                "code": "UNSUPPORTED_TAX_YEAR",
                "context": {"tax_year": getattr(exc, "tax_year", None)},
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(payroll_router, prefix="/api/v1")
    app.include_router(tax_years_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()

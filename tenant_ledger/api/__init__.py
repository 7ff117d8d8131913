"""
Tenant Ledger API Application Factory
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import get_config
from ..exceptions import CapacityExceededError, LedgerError
from ..logging_config import get_logger, setup_logging
from ..tenancy import extract_tenant_from_headers, tenant_context
from .accounts import router as accounts_router
from .dependencies import BankingSystem, get_banking_system, shutdown_banking_system
from .schemas import error_body
from .statements import router as statements_router
from .transactions import router as transactions_router


logger = get_logger("tenant_ledger.api")


def create_app(system: Optional[BankingSystem] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    When ``system`` is given it replaces the process-wide container for every
    route; otherwise one is built from configuration on first request.
    """
    config = get_config()
    setup_logging(level=config.log_level, fmt=config.log_format, log_file=config.log_file)

    def current_system() -> BankingSystem:
        return system if system is not None else get_banking_system()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Shutting down statement executor")
        if system is not None:
            system.shutdown()
        else:
            shutdown_banking_system()

    app = FastAPI(
        title="Tenant Ledger API",
        description="Multi-tenant ledger with asynchronous account statements",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    if system is not None:
        app.dependency_overrides[get_banking_system] = lambda: system

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def tenant_logging_context(request: Request, call_next):
        """Tag log records emitted while serving the request with its tenant"""
        tenant_id = extract_tenant_from_headers(request.headers, config.tenant_header)
        if tenant_id:
            with tenant_context(tenant_id):
                return await call_next(request)
        return await call_next(request)

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        headers = None
        if isinstance(exc, CapacityExceededError):
            headers = {"Retry-After": str(config.capacity_retry_after_seconds)}
        if exc.status_code >= 500:
            logger.error(f"{exc.code}: {exc}", extra={"action": "request_failed"})
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc), exc.code),
            headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        messages = [
            f"{'.'.join(str(p) for p in error['loc'] if p != 'body')}: {error['msg']}"
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=error_body("; ".join(messages), "INVALID_REQUEST")
        )

    # Include routers
    prefix = config.api_prefix.rstrip("/")
    app.include_router(accounts_router, prefix=f"{prefix}/accounts", tags=["Accounts"])
    app.include_router(transactions_router, prefix=f"{prefix}/accounts", tags=["Transactions"])
    app.include_router(statements_router, prefix=f"{prefix}/statements", tags=["Statements"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "tenant_ledger_api",
            "version": __version__,
            "executor": current_system().executor.stats()
        }

    # Root endpoint
    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Tenant Ledger API",
            "version": __version__,
            "description": "Multi-tenant ledger with asynchronous account statements",
            "tenant_header": config.tenant_header,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "accounts": f"{prefix}/accounts",
                "transactions": f"{prefix}/accounts/{{accountId}}/transactions",
                "statements": f"{prefix}/statements",
            }
        }

    return app


# Create the app instance for uvicorn
app = create_app()

# FastAPI Application Entry Point
import asyncio
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configuration and Observability
from brokerage_service.app.config import settings
from brokerage_service.app.observability import setup_opentelemetry, logger

# Initialize OpenTelemetry
setup_opentelemetry(service_name=settings.SERVICE_NAME_API)

# Import instrumentors after OTel SDK is initialized
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

# Database connection
from brokerage_service.infrastructure.database import connection
from brokerage_service.infrastructure.database.entity_store import duplicate_key_field
from brokerage_service.infrastructure.database.indexes import ensure_indexes

from brokerage_service.app.api.dependencies import enforce_access_policy
from brokerage_service.app.service.validation import field_errors_from_pydantic

# API Routers
from brokerage_service.app.api.v1.endpoints import health as health_router
from brokerage_service.app.api.v1.endpoints import auth as auth_router
from brokerage_service.app.api.v1.endpoints import users as users_router
from brokerage_service.app.api.v1.endpoints import clients as clients_router
from brokerage_service.app.api.v1.endpoints import groups as groups_router
from brokerage_service.app.api.v1.endpoints import insurance_companies as insurance_companies_router
from brokerage_service.app.api.v1.endpoints import policies as policies_router
from brokerage_service.app.api.v1.endpoints import risk_notes as risk_notes_router
from brokerage_service.app.api.v1.endpoints import claim_policies as claim_policies_router
from brokerage_service.app.api.v1.endpoints import applications as applications_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("FastAPI application startup...")
    await connection.connect_to_mongo()
    await ensure_indexes(connection.db)
    logger.info("MongoDB connection established and indexes ensured.")
    yield
    logger.info("FastAPI application shutdown...")
    connection.close_mongo_connection()


# --- FastAPI Application Instance ---
app = FastAPI(
    title="Brokerage Service",
    description="Back office for an insurance brokerage: clients, groups, insurers, policies, risk notes and claims.",
    version="0.4.0",
    lifespan=lifespan,
    dependencies=[Depends(enforce_access_policy)],
)


# --- Error envelopes ---
def _error_body(message: Any, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False}
    if isinstance(message, dict):
        body.update(message)
    else:
        body["message"] = message
    body.update(extra)
    return body

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.detail), headers=getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = field_errors_from_pydantic(exc)
    return JSONResponse(status_code=400, content=_error_body("Validation failed", errors=errors))

@app.exception_handler(DuplicateKeyError)
async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    field = duplicate_key_field(exc) or "unique field"
    logger.warning(f"Duplicate key on {request.method} {request.url.path}: {field}")
    return JSONResponse(status_code=400, content=_error_body(f"Duplicate value for {field}"))

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    extra = {} if settings.is_production else {"error": str(exc)}
    return JSONResponse(status_code=500, content=_error_body("Internal Server Error", **extra))


# --- Request timeout ---
@app.middleware("http")
async def request_timeout_middleware(request: Request, call_next):
    try:
        return await asyncio.wait_for(call_next(request), timeout=settings.REQUEST_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.error(f"Request {request.method} {request.url.path} exceeded {settings.REQUEST_TIMEOUT_SECONDS}s.")
        return JSONResponse(status_code=504, content=_error_body("Request timed out"))


# Instrument FastAPI app
FastAPIInstrumentor.instrument_app(app)
logger.info("FastAPI instrumentation complete.")

# Include API Routers
app.include_router(health_router.router)
app.include_router(auth_router.router, prefix="/api/v1")
app.include_router(users_router.router, prefix="/api/v1")
app.include_router(clients_router.router, prefix="/api/v1")
app.include_router(groups_router.router, prefix="/api/v1")
app.include_router(insurance_companies_router.router, prefix="/api/v1")
app.include_router(policies_router.router, prefix="/api/v1")
app.include_router(risk_notes_router.router, prefix="/api/v1")
app.include_router(claim_policies_router.router, prefix="/api/v1")
app.include_router(applications_router.router, prefix="/api/v1")

logger.info("API routers included. Application setup complete.")

# To run: uvicorn brokerage_service.app.main:app --port 4000

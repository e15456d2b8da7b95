"""
WMS Engine FastAPI Application
HTTP surface over the inventory allocation and movement engine
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wms.api.v1.api_router import api_router
from wms.core.config import settings
from wms.core.database import check_db_connection, init_db
from wms.core.exceptions import (
    BusinessLogicError, ConcurrencyConflictError, EntityNotFoundError, StorageFailureError,
    ValidationError, WarehouseError
)
from wms.core.logging import get_logger, setup_logging

logger = get_logger("api")


def status_for(exc: WarehouseError) -> int:
    """HTTP status for an engine error"""
    if isinstance(exc, EntityNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ValidationError):
        return 422  # constant was renamed across Starlette releases
    if isinstance(exc, (BusinessLogicError, ConcurrencyConflictError)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, StorageFailureError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application startup and shutdown

    Verifies the database and creates missing tables when configured to.
    """
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if not check_db_connection():
        logger.error("Failed to connect to database on startup")
        raise RuntimeError("Database connection failed")
    if settings.AUTO_CREATE_TABLES:
        init_db()

    logger.info("Application startup completed successfully")
    yield
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Inventory allocation and movement engine for warehouse documents",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WarehouseError)
async def warehouse_exception_handler(request: Request, exc: WarehouseError):
    """Render engine errors as {"error": code, "detail": message, ...fields}"""
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.code} {exc}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.get("/health")
def health_check():
    """Service and database health"""
    database_ok = check_db_connection()
    return JSONResponse(
        status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if database_ok else "unhealthy",
            "database": "connected" if database_ok else "unavailable",
            "version": settings.APP_VERSION,
        },
    )


@app.get("/info")
def app_info():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "costing_policy": settings.COSTING_POLICY,
        "modules": [
            "Capacity ledger",
            "Stock transfer operator",
            "Allocation validator",
            "Document state machines",
            "Putaway and picking orchestration",
        ],
    }


app.include_router(api_router, prefix=settings.API_V1_STR)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "wms.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from catalog_admin.api.api import api_router
from catalog_admin.config.database import create_document_store, create_mongo_client
from catalog_admin.config.logging import setup_logging
from catalog_admin.config.otel import instrument_fastapi_app, setup_telemetry, shutdown_telemetry
from catalog_admin.config.settings import settings
from catalog_admin.core.exceptions import CatalogError
from catalog_admin.core.init_db import initialize_categories
from catalog_admin.schemas.common import format_errors

# --- 1. 로깅 / OpenTelemetry 초기화 (가장 먼저) ---
setup_logging(settings.LOG_LEVEL)
setup_telemetry(settings)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer("catalog_admin.main")


@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    """애플리케이션 생명주기: MongoDB 연결, 인덱스, 샘플 데이터"""
    with tracer.start_as_current_span("app.lifespan.startup") as startup_span:
        try:
            client = create_mongo_client(settings)
            store = create_document_store(client, settings)
            app_instance.state.store = store

            await store.ping()
            await store.ensure_indexes()

            if settings.SEED_SAMPLE_DATA:
                await initialize_categories(store)

            startup_span.set_status(Status(StatusCode.OK))
            logger.info("Application startup sequence completed.")
        except Exception as e:
            logger.error("Critical error during application startup", extra={"error": str(e)}, exc_info=True)
            startup_span.record_exception(e)
            startup_span.set_status(Status(StatusCode.ERROR, "Critical startup failure"))
            raise

    yield

    logger.info("Starting application shutdown sequence...")
    client.close()
    shutdown_telemetry()
    logger.info("Application shutdown sequence completed.")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Catalog admin API: categories, products and product variants",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(api_router, prefix=settings.API_PREFIX)

instrument_fastapi_app(app)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = format_errors(exc.errors())
    logger.warning("Request validation failed.", extra={"path": request.url.path, "errors": errors})
    return JSONResponse(status_code=400, content={"errors": errors})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error.", extra={"path": request.url.path, "error": str(exc)}, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error", "error": str(exc)})


@app.get("/health/live")
async def liveness():
    """Liveness probe"""
    logger.debug("Liveness probe called")
    return {"status": "alive"}


@app.get("/health/ready")
async def readiness(request: Request):
    """Readiness probe - MongoDB ping"""
    store = getattr(request.app.state, "store", None)
    ping = getattr(store, "ping", None)
    if ping is None:
        return JSONResponse(status_code=503, content={"status": "not ready", "details": {"mongodb": "not configured"}})
    try:
        await ping()
    except Exception as e:
        logger.error("Readiness: MongoDB ping failed", extra={"error": str(e)}, exc_info=True)
        return JSONResponse(status_code=503, content={"status": "not ready", "details": {"mongodb": "failed"}})
    return {"status": "ready", "details": {"mongodb": "connected"}}


@app.get("/")
async def read_root():
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("catalog_admin.main:app", host="0.0.0.0", port=8004, reload=True, log_level="info")

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import uvicorn

from catalog_api import __version__
from catalog_api.core.config import settings, get_cors_exact_origins, get_cors_origin_regex
from catalog_api.core.database import create_db_and_tables, close_db
from catalog_api.core.exceptions import CatalogError
from catalog_api.core.logging import setup_logging
from catalog_api.middleware.logging_middleware import LoggingMiddleware
from catalog_api.controllers import auth_controller, product_controller

logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup", environment=settings.environment)
    try:
        await create_db_and_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    yield

    logger.info("Application shutdown")
    try:
        await close_db()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error("Error during shutdown", error=str(e))


app = FastAPI(
    title="Catalog API",
    description="Product catalog with image uploads and user accounts",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment == "local" else None,
    redoc_url="/redoc" if settings.environment == "local" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_exact_origins(),
    allow_origin_regex=get_cors_origin_regex(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

app.include_router(product_controller.router, prefix=settings.api_prefix)
app.include_router(auth_controller.router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {
        "message": "Catalog API is running",
        "version": __version__,
        "environment": settings.environment,
        "docs_url": "/docs" if settings.environment == "local" else "Documentation disabled in production"
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.environment,
    }


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request, exc: CatalogError):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Request failed",
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        detail=exc.message,
        path=request.url.path,
        method=request.method
    )
    content = {"success": False, "message": exc.message}
    if exc.context:
        content["details"] = exc.context
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())[1:]), "message": err.get("msg")}
        for err in exc.errors()
    ]
    logger.warning("Request validation failed", errors=errors, path=request.url.path)
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": "Invalid request",
            "details": {"errors": errors},
        }
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc):
    logger.warning(
        "HTTP Exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail,
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    logger.error(
        "Unhandled Exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method
    )
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Server error",
            "error": str(exc),
        }
    )


if __name__ == "__main__":
    uvicorn.run(
        "catalog_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "local",
        log_config=None
    )

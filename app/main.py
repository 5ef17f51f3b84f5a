import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import BaseCustomException, ValidationError, create_error_response
from app.core.logging import setup_logging
from app.api.v1.api import api_router
from app.infrastructure.database import init_db, close_db
from app.middleware.tenant_middleware import TenantMiddleware

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(TenantMiddleware)


@app.exception_handler(BaseCustomException)
async def custom_exception_handler(request: Request, exc: BaseCustomException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.error_code} {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc, request.headers.get("X-Request-ID")),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ValidationError(
        "Request validation failed",
        details={"errors": [
            {"loc": list(item.get("loc", [])), "msg": item.get("msg")} for item in exc.errors()
        ]},
    )
    return JSONResponse(
        status_code=error.status_code,
        content=create_error_response(error, request.headers.get("X-Request-ID")),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.critical(f"Unhandled exception for request {request.method} {request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "message": "An internal server error occurred."},
    )


@app.on_event("startup")
def on_startup():
    # Migrations own the schema outside of debug runs
    if settings.DEBUG:
        init_db()


@app.on_event("shutdown")
def on_shutdown():
    close_db()


app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health")
def health_check():
    return {"status": "ok"}

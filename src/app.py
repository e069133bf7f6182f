"""Main FastAPI application module.

This module initializes the FastAPI application, registers the error
handlers that produce the ``{success, message}`` envelope, and mounts the
route handlers at the root and under ``/api``.
"""

import logging
import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime

import pytz
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routes import auth, tracks
from config import API_HOST, API_PORT, CORS_ALLOWED_ORIGINS, ENVIRONMENT
from core.database import init_db
from core.exceptions import ApiError
from core.logging_config import setup_logging

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Error interno del servidor"


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    logger.info("Database initialized")
    yield


# Initialize FastAPI application
app = FastAPI(
    title="Lineas de Profundizacion API",
    description="Catalog of specialization tracks with JWT-protected administration.",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "%s %s - %s - %.0fms",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


def _error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
    )


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    )
    return _error_response(400, f"Datos de entrada inválidos: {details}")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if ENVIRONMENT == "development":
        return _error_response(
            500,
            INTERNAL_ERROR_MESSAGE,
            error=repr(exc),
            stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        )
    return _error_response(500, INTERNAL_ERROR_MESSAGE)


def _register_routes(prefix: str = "", include_in_schema: bool = True) -> None:
    app.include_router(auth.router, prefix=prefix, include_in_schema=include_in_schema)
    app.include_router(tracks.router, prefix=prefix, include_in_schema=include_in_schema)


_register_routes("")
# The web client talks to /api/...
_register_routes("/api", include_in_schema=False)


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    return {
        "name": "Lineas de Profundizacion API",
        "version": "1.0.0",
        "docs": {"swagger": "/docs", "redoc": "/redoc"},
        "health": "/api/health",
    }


@app.get("/health", summary="Health check", tags=["Health"])
@app.get("/api/health", include_in_schema=False)
def health() -> dict:
    return {
        "success": True,
        "message": "Servidor funcionando correctamente",
        "timestamp": datetime.now(pytz.utc).isoformat(),
    }


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    logger.info("Starting API at http://%s:%s (docs at /docs)", API_HOST, API_PORT)
    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=False)

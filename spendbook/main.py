# spendbook/main.py
import inspect
import logging
import os
import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from spendbook.api.v1.api import api_router
from spendbook.core.auth import TokenVerifier
from spendbook.core.config import Settings, get_settings
from spendbook.core.database import Database
from spendbook.core.exceptions import InternalError, SpendbookError, Unauthorized, ValidationError
from spendbook.core.logging import setup_logging

logger = logging.getLogger(__name__)


def _internal_error_body(exc: Exception, settings: Settings) -> dict:
    body = {
        "error": "Internal Server Error",
        "message": "An unexpected error occurred" if settings.is_production else str(exc),
    }
    if settings.is_development:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def _required_body_fields(endpoint) -> List[str]:
    """Required fields of the request body model an endpoint accepts."""
    if endpoint is None:
        return []
    for param in inspect.signature(endpoint).parameters.values():
        model = param.annotation
        if inspect.isclass(model) and issubclass(model, BaseModel):
            return [name for name, field in model.model_fields.items() if field.is_required()]
    return []


def _validation_error_from(request: Request, exc: RequestValidationError) -> ValidationError:
    """Translate FastAPI's request validation errors into the API's 400 shape.

    ``required`` always lists every required body field of the operation;
    ``missing`` and ``invalid`` say which of them were absent or malformed.
    """
    missing, invalid, messages = [], [], []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        field = loc[-1] if len(loc) > 1 else (loc[0] if loc else "body")
        if err.get("type") == "missing":
            missing.append(field)
        else:
            invalid.append(field)
            messages.append(str(err.get("msg", "")).removeprefix("Value error, "))
    message = "; ".join(messages) if messages else "Missing required fields"
    required = _required_body_fields(request.scope.get("endpoint"))
    return ValidationError(message, required=required, invalid=invalid, missing=missing)


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(SpendbookError)
    async def spendbook_error_handler(request: Request, exc: SpendbookError):
        if isinstance(exc, InternalError):
            logger.error(f"Internal error on {request.method} {request.url.path}: {exc.message}")
            return JSONResponse(status_code=exc.status_code, content=_internal_error_body(exc, settings))
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        error = _validation_error_from(request, exc)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content=_internal_error_body(exc, settings))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(settings)
        app.state.db = db
        app.state.token_verifier = TokenVerifier.from_settings(settings)
        try:
            if settings.CREATE_TABLES_ON_STARTUP:
                await db.create_all()
                logger.info("Database schema initialized successfully")
            now = await db.ping()
            logger.info(f"Database connected successfully at: {now}")
        except Exception:
            logger.exception("Database startup failed")
            await db.dispose()
            raise
        logger.info(f"Frontend URL: {settings.FRONTEND_URL}")

        yield

        logger.info("Shutting down: closing database pool")
        await db.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "transactions", "description": "Owner-scoped money transactions"},
            {"name": "budget categories", "description": "Owner-scoped budget ceilings"},
        ],
    )

    # CORS Configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
        return response

    register_exception_handlers(app, settings)

    # ------------------------------------------------------------
    # ROOT ENDPOINT
    # ------------------------------------------------------------
    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information"""
        return {
            "message": f"{settings.APP_NAME} is running!",
            "version": settings.VERSION,
        }

    # ------------------------------------------------------------
    # HEALTH CHECK ENDPOINT
    # ------------------------------------------------------------
    @app.get("/health", tags=["Health"])
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
        }

    # ------------------------------------------------------------
    # BUSINESS LOGIC ROUTES
    # ------------------------------------------------------------
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    uvicorn.run("spendbook.main:app", host="0.0.0.0", port=port, reload=False)

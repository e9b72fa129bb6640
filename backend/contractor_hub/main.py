# backend/contractor_hub/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .db import init_db
from .logging_config import configure_logging
from .middleware.request_id import RequestIDMiddleware
from .middleware.structured_logging import StructuredLoggingMiddleware

from .routers.health import router as health_router
from .routers.auth import router as auth_router
from .routers.jobs import router as jobs_router
from .routers.admin_status import router as admin_status_router
from .routers.settings import router as settings_router
from .routers.pricing_schemes import router as pricing_schemes_router

API_PREFIX = "/api"

log = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    val = getattr(settings, "cors_allow_origins", ["*"])
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = ".".join(str(x) for x in first.get("loc", ()) if x != "body")
    message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg") or "Invalid request")
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": message, "errors": _jsonable_errors(errors)},
    )


def _jsonable_errors(errors: list) -> list[dict]:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]


def create_app() -> FastAPI:
    configure_logging()
    init_db()

    app = FastAPI(title="Contractor Hub", version=settings.app_version)

    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Added last so it wraps everything and the access log sees the id.
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(HTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)

    # Core
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)

    # Job lifecycle
    app.include_router(jobs_router, prefix=API_PREFIX)
    app.include_router(admin_status_router, prefix=API_PREFIX)

    # Tenant configuration
    app.include_router(settings_router, prefix=API_PREFIX)
    app.include_router(pricing_schemes_router, prefix=API_PREFIX)

    log.info("app ready", extra={"event": "startup"})
    return app


app = create_app()

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from .api.routes import browse, health, home, insights, recommend, search
from .core.config import Settings, get_settings
from .core.errors import InvalidParameterError
from .core.logging import setup_logging
from .db.session import build_engine, build_session_factory

logger = logging.getLogger("catalog_api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    owns_engine = app.state.engine is None
    if owns_engine:
        app.state.engine = build_engine(app.state.settings)
        app.state.session_factory = build_session_factory(app.state.engine)
    try:
        yield
    finally:
        if owns_engine:
            await app.state.engine.dispose()
            app.state.engine = None
            logger.info("database pool closed")


def _format_validation_error(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("query", "path", "body")]
        name = ".".join(location) or "request"
        messages.append(f"{name}: {error.get('msg', 'invalid value')}")
    return "; ".join(messages)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": _format_validation_error(exc)})


async def _invalid_parameter_handler(request: Request, exc: InvalidParameterError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("database query failed", exc_info=exc, extra={"path": request.url.path})
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "database query failed"})


def create_app(settings: Optional[Settings] = None, engine: Optional[AsyncEngine] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, service=settings.app_name, environment=settings.environment)
    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine) if engine is not None else None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(InvalidParameterError, _invalid_parameter_handler)
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)

    app.include_router(home.router)
    app.include_router(health.router)
    app.include_router(browse.router)
    app.include_router(search.router)
    app.include_router(recommend.router)
    app.include_router(insights.router)
    return app


app = create_app()

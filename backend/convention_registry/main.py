"""FastAPI application entry point."""
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from . import models
from .auth import router as auth_router
from .config import Settings, get_settings
from .database import build_engine, build_sessionmaker
from .errors import DomainError, Internal, InvalidArgument, Unauthenticated
from .frontend import register_frontend
from .routers.contributions import router as contributions_router
from .routers.conventions import router as conventions_router
from .routers.events import router as events_router
from .routers.uploads import router as uploads_router
from .routers.users import router as users_router
from .seed import seed_defaults
from .sessions import clear_session_cookie, prune_expired_sessions

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def install_error_handlers(app: FastAPI) -> None:
    """Render every failure as ``{"message", "error"}`` without internal detail."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        response = JSONResponse(status_code=exc.status_code, content=exc.to_dict())
        settings: Settings = request.app.state.settings
        if isinstance(exc, Unauthenticated) and settings.session_cookie_name in request.cookies:
            clear_session_cookie(response, settings)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
            for error in exc.errors()
        ]
        error = InvalidArgument(details={"errors": errors})
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        logger.warning("Rate limit exceeded for %s: %s", get_remote_address(request), exc.detail)
        return JSONResponse(
            status_code=429,
            content={
                "message": "عدد الطلبات كبير جداً، يرجى المحاولة لاحقاً",
                "error": "RATE_LIMITED",
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        error = Internal()
        return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around an explicit configuration."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    engine = build_engine(settings)
    sessionmaker = build_sessionmaker(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Ensure database tables exist and baseline data is present."""

        async with engine.begin() as conn:
            await conn.run_sync(models.Base.metadata.create_all)
        settings.upload_dir.mkdir(parents=True, exist_ok=True)

        async with sessionmaker() as session:
            await prune_expired_sessions(session)
            if settings.seed_defaults:
                await seed_defaults(session)

        logger.info("Convention registry started in %s mode", settings.environment)
        yield
        await engine.dispose()

    app = FastAPI(title="Convention Registry", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = sessionmaker
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter

    install_error_handlers(app)

    @app.middleware("http")
    async def log_api_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "%s %s %s in %.0fms",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
            )
        return response

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(conventions_router)
    app.include_router(contributions_router)
    app.include_router(events_router)
    app.include_router(uploads_router)

    @app.get("/health", tags=["system"])
    async def healthcheck() -> dict[str, str]:
        """Simple readiness probe for uptime checks."""

        return {"status": "ok"}

    register_frontend(app, settings, limiter)
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from flashstudy.config import Settings, settings
from flashstudy.db import open_store
from flashstudy.models.envelope import ErrorEnvelope
from flashstudy.services.clock import Clock, SystemClock
from flashstudy.services.errors import StudyError
from flashstudy.services.session_manager import SessionManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = await open_store(app.state.settings)
    app.state.store = store
    app.state.session_manager = SessionManager(store, app.state.clock)
    app.state.started_at = time.monotonic()
    try:
        yield
    finally:
        await store.close()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope(error=message).model_dump(mode="json"),
    )


def _register_error_handlers(application: FastAPI) -> None:
    @application.exception_handler(StudyError)
    async def study_error(request: Request, exc: StudyError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return _error(exc.status_code, str(exc))

    @application.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if errors:
            first = errors[0]
            where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
            message = f"{where}: {first.get('msg', 'invalid value')}" if where else first.get("msg", "")
        else:
            message = "Invalid request"
        return _error(400, message)

    @application.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @application.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Internal server error")


def create_app(
    app_settings: Settings | None = None, clock: Clock | None = None
) -> FastAPI:
    application = FastAPI(
        title="Flashstudy Backend", version="1.0.0", lifespan=lifespan
    )
    application.state.settings = app_settings or settings
    application.state.clock = clock or SystemClock()

    application.add_middleware(
        CORSMiddleware,
        allow_origins=application.state.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s - %d - %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - start) * 1000,
        )
        return response

    _register_error_handlers(application)

    from flashstudy.routers import decks, health, study

    application.include_router(health.router)
    application.include_router(study.router, prefix="/study", tags=["study"])
    application.include_router(decks.router, prefix="/decks", tags=["decks"])
    application.include_router(decks.cards_router, prefix="/cards", tags=["cards"])

    return application


app = create_app()

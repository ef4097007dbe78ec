"""FastAPI application entry point."""

import logging
import os
import uuid

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from feynlearn.api.handlers import error_response, install_error_handlers
from feynlearn.api.routes import router
from feynlearn.api.teaching import router as teaching_router
from feynlearn.config import get_settings

# Configure structlog based on environment
is_production = os.getenv("ENV", "development").lower() == "production"

if is_production:
    # Production: JSON format for machine parsing
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
else:
    # Development: console format for human readability
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

logger = structlog.get_logger()
settings = get_settings()

app = FastAPI(title="FeynLearn", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)
app.include_router(teaching_router)
install_error_handlers(app)

_PUBLIC_PATHS = {"/", "/api/health"}


@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    """Optional APP_SECRET authentication middleware."""
    if not settings.app_secret or request.url.path in _PUBLIC_PATHS:
        return await call_next(request)
    if request.headers.get("X-App-Secret", "") != settings.app_secret:
        return error_response(401, "unauthorized", "Unauthorized")
    return await call_next(request)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Bind a request id to every log line emitted while serving the request."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    logger.info("request_start", method=request.method, path=request.url.path)
    response = await call_next(request)
    logger.info(
        "request_end",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
    )
    response.headers["X-Request-ID"] = request_id
    return response


@app.get("/")
def read_root() -> dict:
    return {"message": "FeynLearn is healthy"}


def main() -> None:
    """Run the application."""
    uvicorn.run(
        "feynlearn.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()

"""Map the error taxonomy onto structured JSON responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from feynlearn.errors import FeynLearnError

logger = structlog.get_logger()


def error_response(status_code: int, code: str, detail) -> JSONResponse:
    return JSONResponse({"error": code, "detail": detail}, status_code=status_code)


def _jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


async def feynlearn_error_handler(request: Request, exc: FeynLearnError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("upstream_error", path=request.url.path, code=exc.code, detail=exc.message)
    else:
        logger.info("request_rejected", path=request.url.path, code=exc.code, detail=exc.message)
    return error_response(exc.status_code, exc.code, exc.message)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    code = "unauthorized" if exc.status_code == 401 else "http_error"
    return error_response(exc.status_code, code, exc.detail)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = _jsonable_errors(exc)
    logger.info("validation_error", path=request.url.path, errors=errors)
    return error_response(422, "validation_error", errors)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Never leak internal exception details to clients.
    logger.exception("unhandled_error", method=request.method, path=request.url.path)
    return error_response(500, "internal_error", "Internal Server Error")


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FeynLearnError, feynlearn_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

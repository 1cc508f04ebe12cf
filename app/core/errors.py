import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

class AppError(Exception):
    status_code: int = 400
    detail: str = "Bad request"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail

class BadRequestError(AppError):
    status_code = 400

class ForbiddenError(AppError):
    status_code = 403
    detail = "Insufficient role permissions"

class NotFoundError(AppError):
    status_code = 404
    detail = "Not found"

class ConflictError(AppError):
    status_code = 409
    detail = "Conflict"

class GoneError(AppError):
    status_code = 410
    detail = "Gone"

class UpstreamError(AppError):
    """An integration partner failed or rejected the call."""
    status_code = 502
    detail = "Upstream service error"

async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

async def integrity_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=409, content={"detail": "Resource conflicts with an existing record"})

def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)

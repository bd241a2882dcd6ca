from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger(__name__)


class InventoryError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 500
    error_type = "inventory_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(InventoryError):
    """A referenced floor, room, equipment entry or record does not exist."""

    status_code = 404
    error_type = "not_found"


class InvalidIndexError(InventoryError):
    """A positional record reference is outside the current array."""

    status_code = 400
    error_type = "invalid_index"

    def __init__(self, index: int, length: int, field: str):
        super().__init__(f"Invalid {field} record index {index} (array has {length} entries)")
        self.index = index
        self.length = length
        self.field = field


class StoreUnavailableError(InventoryError):
    """A Firestore call failed."""

    status_code = 503
    error_type = "store_unavailable"


class UnauthenticatedError(InventoryError):
    status_code = 401
    error_type = "unauthenticated"


class ConflictError(InventoryError):
    """Duplicate key, non-empty floor, or a versioned write that kept losing."""

    status_code = 409
    error_type = "conflict"


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InventoryError)
    async def inventory_exception_handler(request: Request, exc: InventoryError):
        if exc.status_code >= 500:
            logger.error(f"[{exc.error_type}] {request.method} {request.url.path}: {exc.message}")
        else:
            logger.warning(f"[{exc.error_type}] {request.method} {request.url.path}: {exc.message}")

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "message": exc.message,
                "type": exc.error_type,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            logger.error(f"HTTP Exception: {exc.status_code} - {exc.detail}")
        elif exc.status_code >= 400:
            logger.warning(f"HTTP Exception: {exc.status_code} - {exc.detail}")

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "message": exc.detail,
                "type": "http_error",
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation Error: {exc.errors()}")
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "message": "Invalid request data",
                "type": "validation_error",
                "details": jsonable_errors(exc.errors()),
            },
        )


def jsonable_errors(errors) -> list:
    """Pydantic error dicts can carry exception objects under 'ctx'."""
    cleaned = []
    for error in errors:
        item = dict(error)
        if "ctx" in item:
            item["ctx"] = {k: str(v) for k, v in item["ctx"].items()}
        cleaned.append(item)
    return cleaned

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for every error that is turned into a `{"error": ...}` response.

    `message` is what the client sees. `detail` is internal context that is only
    ever written to the server log, and only for classes with `log_level` set.
    """

    status_code = 500
    message = "Internal server error"
    log_level: int | None = None

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.message)
        self.detail = detail


class NotFound(AppError):
    status_code = 404
    message = "Not found"

    def __init__(self, message: str | None = None):
        super().__init__(message)
        if message:
            self.message = message


class UsernameTaken(AppError):
    status_code = 400
    message = "Username is already taken"


class HashingError(AppError):
    message = "Password processing failed"
    log_level = logging.ERROR


class TokenError(AppError):
    status_code = 401
    message = "Unauthorized"
    log_level = logging.WARNING


class InvalidToken(TokenError):
    pass


class ExpiredToken(TokenError):
    pass


class MalformedToken(TokenError):
    pass


class MissingConfig(AppError):
    message = "Server is not configured"
    log_level = logging.ERROR


class MissingAuthToken(AppError):
    status_code = 401
    message = "Missing authorization token"


class StoreError(AppError):
    log_level = logging.ERROR


class MalformedData(AppError):
    log_level = logging.ERROR


def error_response(exc: AppError) -> JSONResponse:
    if exc.log_level is not None:
        logger.log(exc.log_level, "%s: %s", type(exc).__name__, exc.detail or exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err["loc"][1:]) for err in exc.errors()]
        return JSONResponse(
            status_code=422,
            content={"error": "Invalid request body", "fields": fields},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

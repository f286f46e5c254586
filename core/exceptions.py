from fastapi import Request, status
from fastapi.responses import JSONResponse
from utils.logger import get_logger

logger = get_logger("Global_Exception")


class AppError(Exception):
    """
    Base class for errors surfaced to the operator. Each subclass maps to one
    HTTP status code; `restaurant_status` tells the caller which state the
    system believes the restaurant is in after the failure.
    """
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str, restaurant_status: str | None = None):
        self.detail = detail
        self.restaurant_status = restaurant_status
        super().__init__(detail)

    def to_dict(self) -> dict:
        body = {"detail": self.detail}
        if self.restaurant_status is not None:
            body["status"] = self.restaurant_status
        return body


class ApplicationValidationError(AppError):
    """Registration payload rejected before any store call."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("Application has invalid fields")

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class ConfirmationRequiredError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidTransitionError(NotFoundError):
    """The restaurant exists but is not in the state the operation expects."""
    status_code = status.HTTP_409_CONFLICT


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT


class AccessDeniedError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class TransportError(AppError):
    """Store or notification backend unreachable, or it answered with a non-2xx."""
    status_code = status.HTTP_502_BAD_GATEWAY


class NotificationError(TransportError):
    pass


class PartialFailureError(AppError):
    """A step committed but its compensation could not be applied."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def app_exception_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.detail}", extra={"path": request.url.path})
    else:
        logger.warning(f"{type(exc).__name__}: {exc.detail}", extra={"path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path}
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

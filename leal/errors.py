"""Domain errors and their mapping onto HTTP error responses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus


class ErrorType(str, Enum):
    """Error codes exposed to API clients."""

    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    SAVE_ERROR = "SAVE_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    DUPLICATE_KEY = "DUPLICATE_KEY"


class LealError(Exception):
    """Base class of the domain errors; an optional detail follows the base message."""

    default_message = "unexpected error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        text = f"{self.default_message}: {detail}" if detail else self.default_message
        super().__init__(text)


class BadRequestError(LealError):
    default_message = "the request is invalid or malformed"


class NotFoundError(LealError):
    default_message = "error data not found"


class UnauthorizedError(LealError):
    default_message = "the user is not authorized"


class SavingError(LealError):
    default_message = "error saving the entity"


class InternalServerError(LealError):
    default_message = "internal server error"


class DuplicatedKeyError(LealError):
    default_message = "duplicate key"


@dataclass(frozen=True)
class AppError:
    """The error body sent to clients."""

    code: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class LogError(Exception):
    """An error ready to be logged and turned into an HTTP response."""

    def __init__(
        self,
        type: ErrorType,
        message: str,
        status_code: int,
        log_message: str,
        uuid: str = "",
    ) -> None:
        super().__init__(f"{type.value}: {message}")
        self.type = type
        self.message = message
        self.status_code = status_code
        self.log_message = log_message
        self.uuid = uuid

    def to_app_error(self) -> AppError:
        return AppError(code=self.type.value, message=self.message)


_KNOWN_ERRORS = (
    (BadRequestError, ErrorType.BAD_REQUEST, "Invalid request", HTTPStatus.BAD_REQUEST),
    (DuplicatedKeyError, ErrorType.DUPLICATE_KEY, "The entity already exists", HTTPStatus.CONFLICT),
    (UnauthorizedError, ErrorType.UNAUTHORIZED, "Unauthorized", HTTPStatus.UNAUTHORIZED),
    (NotFoundError, ErrorType.NOT_FOUND, "Entity not found", HTTPStatus.NOT_FOUND),
)


def parse_error(err: BaseException) -> LogError:
    """Classify any exception into a LogError with status code and client message."""
    log_message = str(err)
    for kind, error_type, message, status in _KNOWN_ERRORS:
        if isinstance(err, kind):
            return LogError(error_type, message, int(status), log_message)
    if isinstance(err, SavingError):
        return LogError(ErrorType.SAVE_ERROR, log_message, int(HTTPStatus.BAD_REQUEST), log_message)
    return LogError(
        ErrorType.INTERNAL_SERVER_ERROR,
        "Something unexpected has happened",
        int(HTTPStatus.INTERNAL_SERVER_ERROR),
        log_message,
    )
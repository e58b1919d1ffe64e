"""Typed service errors and their HTTP translation.

Services raise ``NoticeServiceError`` tagged with an ``ErrorKind``; the
application maps the kind to a status code in exactly one place
(``status_code_for``) and renders every failure with ``error_body``.
"""

from datetime import UTC, datetime
from enum import StrEnum

from starlette import status

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


class ErrorKind(StrEnum):
    VALIDATION = "validation_error"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INTERNAL = "internal_error"


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class NoticeServiceError(Exception):
    """A business failure raised by the service layer."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return status_code_for(self.kind)

    @property
    def public_message(self) -> str:
        """Message safe to return to the caller.

        Internal errors never leak their detail.
        """
        if self.kind is ErrorKind.INTERNAL:
            return GENERIC_ERROR_MESSAGE
        return self.message

    @classmethod
    def validation(cls, message: str) -> "NoticeServiceError":
        return cls(ErrorKind.VALIDATION, message)

    @classmethod
    def forbidden(
        cls, message: str = "Only administrators can perform this action."
    ) -> "NoticeServiceError":
        return cls(ErrorKind.FORBIDDEN, message)

    @classmethod
    def not_found(cls, message: str = "Notice not found.") -> "NoticeServiceError":
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def internal(cls, message: str) -> "NoticeServiceError":
        return cls(ErrorKind.INTERNAL, message)


def status_code_for(kind: ErrorKind) -> int:
    return _STATUS_BY_KIND[kind]


def error_body(status_code: int, message: str) -> dict:
    """Uniform error payload: {status, message, timestamp}."""
    return {
        "status": status_code,
        "message": message,
        "timestamp": datetime.now(UTC).isoformat(),
    }

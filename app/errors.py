from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from fastapi.responses import JSONResponse


T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    SERVER = "server_error"
    ROUTE_NOT_FOUND = "route_not_found"


# kind -> (status, public message)
ERROR_TABLE: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.VALIDATION: (400, "from, to, msg required"),
    ErrorKind.NOT_FOUND: (404, "Message not found"),
    ErrorKind.SERVER: (500, "Server error"),
    ErrorKind.ROUTE_NOT_FOUND: (404, "Route not found"),
}


@dataclass
class Outcome(Generic[T]):
    """Result of a service call: either ``value`` or ``error`` is set."""

    value: Optional[T] = None
    error: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def result(self) -> str:
        # label used in logs and metrics
        return "ok" if self.error is None else self.error.value


def status_for(kind: ErrorKind) -> int:
    return ERROR_TABLE[kind][0]


def error_response(kind: ErrorKind) -> JSONResponse:
    status_code, message = ERROR_TABLE[kind]
    return JSONResponse(status_code=status_code, content={"error": message})

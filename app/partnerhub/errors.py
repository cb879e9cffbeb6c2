from __future__ import annotations

from typing import Any


class ServiceError(RuntimeError):
    """Business-rule failure raised by service functions and rendered as a JSON error."""

    def __init__(self, message: str, status: int = 400, details: Any = None, **extra: Any):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            out["details"] = self.details
        out.update(self.extra)
        return out


def validation_error(errors: list[str]) -> ServiceError:
    return ServiceError(errors[0], 400, details=errors)

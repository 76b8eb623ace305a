from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class ValidationError(AppError):
    pass


class NotConnectedError(AppError):
    pass


class AckTimeoutError(AppError):
    pass


class UnknownEventError(AppError):
    pass


class ApiError(AppError):
    """Non-success response from the REST api."""

    def __init__(self, detail: str = "", status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(detail)

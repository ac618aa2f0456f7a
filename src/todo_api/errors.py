from __future__ import annotations


class AppError(Exception):
    """
    Base class for failures that map onto an HTTP status.

    The transport layer renders every AppError as
    ``{"errCode": status_code, "detail": detail}``.
    """

    status_code: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    @property
    def detail(self) -> str:
        """
        The message, or the text of the underlying cause when no message was given.

        Raise with ``raise NotFoundError() from exc`` to surface the cause's text.
        """
        if self.message:
            return self.message
        if self.__cause__ is not None:
            return str(self.__cause__)
        return self.__class__.__name__


class BadRequestError(AppError):
    """Malformed or out-of-range input."""

    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401


class NotFoundError(AppError):
    """The referenced todo is absent or owned by a different user."""

    status_code = 404


class ConflictError(AppError):
    status_code = 409


class InternalError(AppError):
    """Storage fault or other unexpected backend failure."""

    status_code = 500

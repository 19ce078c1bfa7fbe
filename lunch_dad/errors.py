"""Exception types shared by the calendar, fetchers and HTTP layer."""

from __future__ import annotations


class LunchServiceError(Exception):
    """Base class for all errors raised by the lunch service."""


class InvalidInputError(LunchServiceError, ValueError):
    """Caller passed a bad date, count, timezone or coordinate."""


class TransientNetworkError(LunchServiceError):
    """A network failure that is worth retrying."""


class DataContractError(LunchServiceError):
    """A response was received but could not be turned into a domain record."""


class UpstreamRequestError(LunchServiceError):
    """The provider rejected the request (a 4xx status) and retrying cannot help."""


class ExhaustedRetriesError(LunchServiceError):
    """Every attempt of a retried call failed."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException | None = None) -> None:
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(f"Failed to {operation} after {attempts} attempts{detail}")


class ExhaustedSearchError(LunchServiceError):
    """The school-day search ran past its safety bound."""

"""Exceptions raised by listweave.

Local validation errors (InvalidArgumentError, InvalidStateError) are raised
before anything is mutated or sent. Remote failures are raised only when the
caller observes the execution of a batch.
"""

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from listweave.platform.batch.types import BatchResult


class ListweaveException(Exception):
    """Base exception for listweave."""

    pass


class InvalidArgumentError(ListweaveException, ValueError):
    """Raised when a required argument is missing or empty."""

    def __init__(self, argument: str, message: Optional[str] = None):
        """Initialize the error.

        Args:
            argument: Name of the offending argument
            message: Optional override of the default message
        """
        self.argument = argument
        super().__init__(message or f"Argument '{argument}' must be a non-empty value")


class InvalidStateError(ListweaveException):
    """Raised when an entity is used outside its valid state transitions."""

    pass


class RemoteOperationFailedError(ListweaveException):
    """Raised when the batch executor reports failures.

    Every failed result carries the entity it belongs to.
    """

    def __init__(self, failures: List["BatchResult"], message: Optional[str] = None):
        """Initialize the error.

        Args:
            failures: Failed results, one per failing request
            message: Optional override of the summary message
        """
        self.failures = failures
        if message is None:
            details = "; ".join(
                f"{f.request_id}: {f.error or 'unknown error'}" for f in failures
            )
            message = f"{len(failures)} request(s) failed: {details}"
        super().__init__(message)

    @property
    def entities(self) -> list:
        """Entities whose requests failed."""
        return [f.entity for f in self.failures if f.entity is not None]

"""Client context.

Holds the batch executor and the implicit "current" batch. Operations take a
batch explicitly; the current batch is only a convenience for callers that
want to accumulate work without passing a batch around.
"""

import threading
from typing import List, Optional

import httpx

from listweave.core.logging import ContextualLogger, LoggerConfigurator
from listweave.platform.batch.dispatcher import BatchDispatcher
from listweave.platform.batch.executor import BatchExecutor
from listweave.platform.batch.http_executor import HttpBatchExecutor
from listweave.platform.batch.types import Batch, BatchResult
from listweave.platform.entities.content_type import ContentTypeEntity


class ClientContext:
    """Connection-level state shared by collections.

    Attributes:
        executor: Executor performing the network round trips
        logger: Contextual logger
    """

    def __init__(
        self,
        executor: BatchExecutor,
        logger: Optional[ContextualLogger] = None,
        reject_duplicate_pending: Optional[bool] = None,
    ):
        """Initialize the context.

        Args:
            executor: Batch executor
            logger: Optional contextual logger
            reject_duplicate_pending: Duplicate policy for batches created by this
                context, defaults to settings.BATCH_REJECT_DUPLICATE_PENDING
        """
        self.executor = executor
        self.logger = logger or LoggerConfigurator.configure_logger(
            "listweave.platform.contexts", dimensions={"component": "client_context"}
        )
        self._reject_duplicate_pending = reject_duplicate_pending
        self._dispatcher = BatchDispatcher(executor, logger=self.logger)
        self._current_batch: Optional[Batch] = None
        self._current_batch_lock = threading.Lock()

    @classmethod
    def create(
        cls,
        client: Optional[httpx.AsyncClient] = None,
        site_url: Optional[str] = None,
    ) -> "ClientContext":
        """Create a context that executes batches over HTTP.

        Args:
            client: Authenticated httpx client (one is created if omitted)
            site_url: Site URL, defaults to settings.SITE_URL
        """
        return cls(HttpBatchExecutor(client=client, site_url=site_url))

    @property
    def current_batch(self) -> Batch:
        """Get the implicit batch, creating it on first use."""
        with self._current_batch_lock:
            if self._current_batch is None:
                self._current_batch = self.new_batch()
            return self._current_batch

    def new_batch(self) -> Batch:
        """Create a new, empty batch."""
        return Batch(reject_duplicates=self._reject_duplicate_pending)

    def content_type(
        self, content_type_id: str, name: Optional[str] = None, list_id: Optional[str] = None
    ) -> ContentTypeEntity:
        """Get a handle for an existing content type."""
        return ContentTypeEntity.bind(self, content_type_id, name=name, list_id=list_id)

    async def execute(
        self, batch: Optional[Batch] = None, throw_on_error: bool = True
    ) -> List[BatchResult]:
        """Execute a batch (the current batch if none is given).

        Args:
            batch: Batch to execute
            throw_on_error: Raise RemoteOperationFailedError if any request failed

        Returns:
            One result per executed request, in insertion order
        """
        return await self._dispatcher.dispatch(
            batch if batch is not None else self.current_batch,
            throw_on_error=throw_on_error,
        )

    async def aclose(self) -> None:
        """Release the executor's resources."""
        await self.executor.aclose()

    async def __aenter__(self) -> "ClientContext":
        """Enter async context manager."""
        return self

    async def __aexit__(self, *args) -> None:
        """Exit async context manager."""
        await self.aclose()

"""Batch dispatcher.

Runs a batch through the executor and applies each per-request result to the
entity that originated it. Every request in the batch is attempted; failures
are collected and surfaced after all outcomes have been applied.
"""

import asyncio
from dataclasses import replace
from typing import List, Optional, Sequence

from listweave.core.exceptions import RemoteOperationFailedError
from listweave.core.logging import ContextualLogger
from listweave.core.logging import logger as default_logger
from listweave.platform.batch.executor import BatchExecutor
from listweave.platform.batch.types import Batch, BatchRequest, BatchResult


class BatchDispatcher:
    """Executes batches and maps results back to entities.

    Execution Order:
    1. Claim the pending requests of the batch (insertion order)
    2. Execute them through the executor (single suspension point)
    3. Map results to requests by correlation id
    4. Move each entity to COMMITTED or FAILED
    5. Drain executed requests from the batch
    6. Raise RemoteOperationFailedError if asked to and anything failed

    Concurrent dispatches of the same batch are serialized, so a request is
    never sent twice. If execution is cancelled, requests the executor already
    reported on are applied and drained; the rest stay PENDING and dispatching
    the batch again retries only them.
    """

    def __init__(self, executor: BatchExecutor, logger: Optional[ContextualLogger] = None):
        """Initialize dispatcher.

        Args:
            executor: Executor performing the network round trip
            logger: Optional contextual logger
        """
        self._executor = executor
        self.logger = logger or default_logger.with_context(component="batch_dispatcher")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def dispatch(self, batch: Batch, throw_on_error: bool = True) -> List[BatchResult]:
        """Execute all pending requests of a batch.

        Args:
            batch: Batch to execute
            throw_on_error: Raise if any request failed

        Returns:
            One result per executed request, in insertion order

        Raises:
            RemoteOperationFailedError: If throw_on_error and any request failed
            asyncio.CancelledError: If execution was cancelled
        """
        log = self.logger.with_context(batch_id=batch.id)

        async with batch.execution_lock:
            requests = batch.claim()
            if not requests:
                log.debug("[Dispatcher] Nothing to execute")
                return []

            try:
                log.debug(f"[Dispatcher] Executing {len(requests)} request(s): {batch.summary()}")
                results = await self._execute(batch, requests, log)
            finally:
                batch.release(r.id for r in requests)

        failures = [r for r in results if not r.success]
        if failures:
            log.warning(f"[Dispatcher] {len(failures)} of {len(results)} request(s) failed")
            if throw_on_error:
                raise RemoteOperationFailedError(failures)
        else:
            log.debug(f"[Dispatcher] All {len(results)} request(s) succeeded")

        return results

    # -------------------------------------------------------------------------
    # Internal Methods
    # -------------------------------------------------------------------------

    async def _execute(
        self, batch: Batch, requests: List[BatchRequest], log: ContextualLogger
    ) -> List[BatchResult]:
        """Run claimed requests through the executor, then apply and drain them."""
        completed: List[BatchResult] = []

        try:
            raw_results = await self._executor.execute(requests, on_results=completed.extend)
        except asyncio.CancelledError:
            self._settle_completed(batch, requests, completed, log)
            raise
        except Exception as e:
            log.error(f"[Dispatcher] Batch execution failed: {e}", exc_info=True)
            reported = {r.request_id for r in completed}
            raw_results = completed + [
                BatchResult(request_id=r.id, success=False, error=f"Batch execution failed: {e}")
                for r in requests
                if r.id not in reported
            ]

        results = self._map_results(requests, raw_results, log)
        self._apply_results(results, log)
        batch.drain(r.id for r in requests)
        return results

    def _settle_completed(
        self,
        batch: Batch,
        requests: Sequence[BatchRequest],
        completed: Sequence[BatchResult],
        log: ContextualLogger,
    ) -> None:
        """Apply and drain the requests the executor finished before cancellation."""
        reported = {r.request_id for r in completed}
        finished = [r for r in requests if r.id in reported]
        log.warning(
            f"[Dispatcher] Execution cancelled, {len(requests) - len(finished)} "
            f"request(s) stay pending"
        )
        if finished:
            self._apply_results(self._map_results(finished, completed, log), log)
            batch.drain(r.id for r in finished)

    def _map_results(
        self,
        requests: Sequence[BatchRequest],
        raw_results: Sequence[BatchResult],
        log: ContextualLogger,
    ) -> List[BatchResult]:
        """Order results like the requests and attach the originating entities."""
        by_id = {result.request_id: result for result in raw_results}

        unknown = set(by_id) - {r.id for r in requests}
        if unknown:
            log.warning(f"[Dispatcher] Ignoring results for unknown request ids: {sorted(unknown)}")

        results = []
        for request in requests:
            result = by_id.get(request.id)
            if result is None:
                result = BatchResult(
                    request_id=request.id,
                    success=False,
                    error="No result returned for request",
                )
            results.append(replace(result, entity=request.entity))
        return results

    def _apply_results(self, results: Sequence[BatchResult], log: ContextualLogger) -> None:
        """Move entities to their final state."""
        for result in results:
            entity = result.entity
            if entity is None:
                continue
            if result.success:
                entity.mark_committed(result.assigned_id)
            else:
                log.with_context(request_id=result.request_id).error(
                    f"[Dispatcher] {type(entity).__name__} failed: {result.error}"
                )
                entity.mark_failed(result.error)

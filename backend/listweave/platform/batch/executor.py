"""Batch executor contract.

Executors put a batch's requests on the wire and report one result per request.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence

from listweave.platform.batch.types import BatchRequest, BatchResult

ResultsCallback = Callable[[List[BatchResult]], None]


class BatchExecutor(ABC):
    """Protocol for batch executors.

    Contract:
    - Requests are executed in the order given
    - The returned list holds one BatchResult per request, with request_id set to
      the request's correlation id (order of the list does not matter)
    - A failing request MUST be reported as an unsuccessful result, not raised,
      so sibling outcomes are not lost
    - Executors sending requests in several round trips report the results of
      each finished round trip through ``on_results`` as soon as they have them
    - Cancellation (asyncio.CancelledError) is propagated untouched
    """

    @abstractmethod
    async def execute(
        self,
        requests: Sequence[BatchRequest],
        on_results: Optional[ResultsCallback] = None,
    ) -> List[BatchResult]:
        """Execute requests as one unit.

        Args:
            requests: Pending requests in insertion order
            on_results: Called with the results of every finished round trip

        Returns:
            One result per request
        """
        pass

    async def aclose(self) -> None:  # noqa: B027
        """Release transport resources."""
        pass

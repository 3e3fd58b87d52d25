"""Batch request and result types.

A batch is an ordered accumulator of pending requests. Requests are executed in
the order they were added, and each request is executed at most once: after
execution it is drained from the batch, which can then be reused.
"""

import asyncio
import threading
import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Hashable, Iterable, List, Optional, Set, Tuple
from uuid import uuid4

from listweave.core.config import settings
from listweave.core.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from listweave.platform.entities._base import BaseEntity


def _new_request_id() -> str:
    return uuid4().hex


@dataclass
class BatchRequest:
    """A pending mutation request.

    Attributes:
        method: HTTP method
        url: Site-relative URL of the target resource
        body: JSON body
        entity: Entity the request materializes (back-reference only)
        headers: Extra request headers
        dedup_key: Key identifying requests that may not be pending twice
        id: Correlation ID used to map the result back to the request
        order: Position in the batch, assigned when added
        executed: Whether the request has been executed
    """

    method: str
    url: str
    body: Optional[Dict[str, Any]] = None
    entity: Optional["BaseEntity"] = field(default=None, repr=False)
    headers: Dict[str, str] = field(default_factory=dict)
    dedup_key: Optional[Hashable] = None
    id: str = field(default_factory=_new_request_id)
    order: int = -1
    executed: bool = False


@dataclass
class BatchResult:
    """Outcome of one request in an executed batch."""

    request_id: str
    success: bool
    assigned_id: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    entity: Optional["BaseEntity"] = field(default=None, repr=False)


class Batch:
    """Ordered accumulator of pending requests.

    ``add`` is safe to call from concurrent call chains; the batch order is the
    order in which ``add`` calls complete.

    Executions are serialized per event loop by ``execution_lock``. Requests
    taken by an execution are claimed until they are drained or released, so an
    execution running on another loop (or thread) never picks them up again.
    """

    def __init__(self, reject_duplicates: Optional[bool] = None):
        """Initialize an empty batch.

        Args:
            reject_duplicates: Reject requests whose dedup_key is already pending.
                Defaults to settings.BATCH_REJECT_DUPLICATE_PENDING.
        """
        self.id = str(uuid4())
        self.reject_duplicates = (
            settings.BATCH_REJECT_DUPLICATE_PENDING
            if reject_duplicates is None
            else reject_duplicates
        )
        self._requests: List[BatchRequest] = []
        self._claimed: Set[str] = set()
        self._next_order = 0
        self._lock = threading.Lock()
        # One lock per event loop; asyncio locks cannot be shared between loops
        self._execution_locks: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()

    @property
    def execution_lock(self) -> asyncio.Lock:
        """Get the lock serializing executions on the running event loop."""
        loop = asyncio.get_running_loop()
        with self._lock:
            lock = self._execution_locks.get(loop)
            if lock is None:
                lock = self._execution_locks[loop] = asyncio.Lock()
            return lock

    def add(self, request: BatchRequest) -> BatchRequest:
        """Append a request at the tail of the batch.

        Args:
            request: Request to add

        Returns:
            The request, with its order assigned

        Raises:
            InvalidArgumentError: If duplicates are rejected and a request with
                the same dedup_key is already pending
        """
        with self._lock:
            if self.reject_duplicates and request.dedup_key is not None:
                for pending in self._requests:
                    if not pending.executed and pending.dedup_key == request.dedup_key:
                        raise InvalidArgumentError(
                            "dedup_key",
                            f"A request for {request.dedup_key!r} is already pending "
                            f"in batch {self.id}",
                        )
            request.order = self._next_order
            self._next_order += 1
            self._requests.append(request)
        return request

    @property
    def pending(self) -> List[BatchRequest]:
        """Get requests not executed yet, in insertion order."""
        with self._lock:
            return [r for r in self._requests if not r.executed]

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for r in self._requests if not r.executed)

    def claim(self) -> List[BatchRequest]:
        """Take the pending requests no other execution holds, in insertion order."""
        with self._lock:
            claimed = [
                r for r in self._requests if not r.executed and r.id not in self._claimed
            ]
            self._claimed.update(r.id for r in claimed)
            return claimed

    def release(self, request_ids: Iterable[str]) -> None:
        """Give claimed requests back so a later execution can send them."""
        with self._lock:
            self._claimed.difference_update(request_ids)

    def drain(self, request_ids: Iterable[str]) -> None:
        """Mark requests executed and remove them from the batch."""
        done = set(request_ids)
        with self._lock:
            for request in self._requests:
                if request.id in done:
                    request.executed = True
            self._requests = [r for r in self._requests if not r.executed]
            self._claimed.difference_update(done)

    def summary(self) -> str:
        """Get a summary string of the batch."""
        counts: Dict[Tuple[str, str], int] = {}
        for request in self.pending:
            key = (request.method, request.url)
            counts[key] = counts.get(key, 0) + 1
        if not counts:
            return "empty"
        return ", ".join(f"{n} x {method} {url}" for (method, url), n in counts.items())

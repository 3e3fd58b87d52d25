"""Batch module.

Types (types.py):
    Batch, BatchRequest, BatchResult

Executors:
    BatchExecutor (contract), HttpBatchExecutor (JSON $batch over httpx)

Dispatcher:
    BatchDispatcher, executes a batch and applies results to entities
"""

from .dispatcher import BatchDispatcher
from .executor import BatchExecutor
from .http_executor import HttpBatchExecutor
from .types import Batch, BatchRequest, BatchResult

__all__ = [
    "Batch",
    "BatchDispatcher",
    "BatchExecutor",
    "BatchRequest",
    "BatchResult",
    "HttpBatchExecutor",
]

"""Unit test conftest for setting up test environment."""

import os

# Set environment before importing any listweave modules so Settings picks it up
os.environ.setdefault("LISTWEAVE_SITE_URL", "https://contoso.example.com/sites/dev")
os.environ.setdefault("LISTWEAVE_LOG_LEVEL", "DEBUG")
os.environ.setdefault("LISTWEAVE_BATCH_MAX_REQUESTS", "100")

import asyncio  # noqa: E402
from typing import Dict, List, Optional, Sequence  # noqa: E402

import pytest  # noqa: E402

from listweave.platform.batch.executor import BatchExecutor  # noqa: E402
from listweave.platform.batch.types import BatchRequest, BatchResult  # noqa: E402
from listweave.platform.contexts.client import ClientContext  # noqa: E402


class FakeExecutor(BatchExecutor):
    """In-memory executor recording every round trip.

    Requests whose body has a FieldInternalName listed in ``fail_names`` fail.
    Results are returned in reverse order to check mapping by correlation id.
    """

    def __init__(self, fail_names: Optional[Dict[str, str]] = None):
        self.fail_names = fail_names or {}
        self.calls: List[List[BatchRequest]] = []
        self.block: Optional[asyncio.Event] = None
        self._next_id = 1

    async def execute(self, requests: Sequence[BatchRequest], on_results=None) -> List[BatchResult]:
        self.calls.append(list(requests))
        if self.block is not None:
            await self.block.wait()

        results = []
        for request in requests:
            name = (request.body or {}).get("FieldInternalName")
            if name in self.fail_names:
                results.append(
                    BatchResult(
                        request_id=request.id,
                        success=False,
                        error=self.fail_names[name],
                        status_code=400,
                    )
                )
            else:
                results.append(
                    BatchResult(
                        request_id=request.id,
                        success=True,
                        assigned_id=f"id-{self._next_id}",
                        status_code=201,
                    )
                )
                self._next_id += 1
        return list(reversed(results))


@pytest.fixture
def executor():
    """Create a fake executor where every request succeeds."""
    return FakeExecutor()


@pytest.fixture
def context(executor):
    """Create a client context on top of the fake executor."""
    return ClientContext(executor)


@pytest.fixture
def content_type(context):
    """Create a bound content type."""
    return context.content_type("0x0100ABCDEF", name="Project", list_id="1234")


@pytest.fixture
def field_links(content_type):
    """Get the field link collection of the content type."""
    return content_type.field_links

"""Tests for ClientContext."""

import threading
from unittest.mock import AsyncMock, MagicMock

import pytest

from listweave.core.exceptions import RemoteOperationFailedError
from listweave.platform.batch.http_executor import HttpBatchExecutor
from listweave.platform.contexts.client import ClientContext
from listweave.platform.entities import EntityState


def test_current_batch_is_created_once(context):
    """Test that the implicit batch is stable between accesses."""
    assert context.current_batch is context.current_batch


def test_current_batch_shared_across_threads(context):
    """Test that concurrent first access yields a single batch."""
    seen = []
    barrier = threading.Barrier(8)

    def access():
        barrier.wait()
        seen.append(context.current_batch)

    threads = [threading.Thread(target=access) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len({id(batch) for batch in seen}) == 1


def test_new_batch_is_independent(context):
    """Test that new batches are distinct from the current batch."""
    batch = context.new_batch()

    assert batch is not context.current_batch
    assert batch.id != context.current_batch.id


@pytest.mark.asyncio
async def test_current_batch_reused_after_execution(context, field_links, executor):
    """Test that the current batch is drained and reused."""
    await field_links.add_batch_current("Title")
    await context.execute()
    batch = context.current_batch

    await field_links.add_batch_current("Status")
    results = await context.execute()

    assert context.current_batch is batch
    assert [r.entity.field_internal_name for r in results] == ["Status"]
    assert len(executor.calls) == 2


@pytest.mark.asyncio
async def test_execute_without_throw_returns_failures(context, field_links, executor):
    """Test that failures can be inspected without an exception."""
    executor.fail_names = {"Bad": "rejected"}
    batch = context.new_batch()
    await field_links.add_batch(batch, "Bad")
    await field_links.add_batch(batch, "Good")

    results = await context.execute(batch, throw_on_error=False)

    assert [r.success for r in results] == [False, True]
    assert results[0].entity.state is EntityState.FAILED


@pytest.mark.asyncio
async def test_batch_mixes_collections(context, executor):
    """Test that one batch carries requests for unrelated parents."""
    first = context.content_type("0x0101").field_links
    second = context.content_type("0x0120", list_id="abcd").field_links
    batch = context.new_batch()

    a = await first.add_batch(batch, "Title")
    b = await second.add_batch(batch, "Title")
    results = await context.execute(batch)

    assert [r.entity for r in results] == [a, b]
    assert len(executor.calls) == 1
    assert executor.calls[0][0].url != executor.calls[0][1].url


@pytest.mark.asyncio
async def test_execute_raises_for_failures(context, field_links, executor):
    """Test the default throw_on_error behaviour."""
    executor.fail_names = {"Bad": "rejected"}
    await field_links.add_batch_current("Bad")

    with pytest.raises(RemoteOperationFailedError):
        await context.execute()


@pytest.mark.asyncio
async def test_context_manager_closes_executor():
    """Test that leaving the context closes the executor."""
    executor = MagicMock()
    executor.aclose = AsyncMock()

    async with ClientContext(executor) as context:
        assert context.executor is executor

    executor.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_uses_http_executor():
    """Test the HTTP factory."""
    context = ClientContext.create(site_url="https://contoso.example.com/sites/hr")

    assert isinstance(context.executor, HttpBatchExecutor)
    assert context.executor.endpoint_url == "https://contoso.example.com/sites/hr/_api/$batch"
    await context.aclose()

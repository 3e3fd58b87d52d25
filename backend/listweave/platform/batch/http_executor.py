"""HTTP batch executor.

Sends requests as JSON batch envelopes:

    POST {site_url}/{batch_endpoint}
    {"requests": [{"id": "...", "method": "POST", "url": "...", "headers": {...}, "body": {...}}]}

and reads

    {"responses": [{"id": "...", "status": 201, "body": {...}}]}

Responses may come back in any order; they are matched by id.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx
from tenacity import AsyncRetrying, stop_after_attempt

from listweave.core.config import settings
from listweave.core.logging import ContextualLogger
from listweave.core.logging import logger as default_logger
from listweave.platform.batch.executor import BatchExecutor, ResultsCallback
from listweave.platform.batch.types import BatchRequest, BatchResult
from listweave.platform.http_client.retry_helpers import (
    retry_if_throttle_or_timeout,
    wait_throttle_with_backoff,
)

DEFAULT_REQUEST_HEADERS = {
    "Accept": "application/json;odata=nometadata",
    "Content-Type": "application/json;odata=verbose",
}


class HttpBatchExecutor(BatchExecutor):
    """Executes batches against a JSON $batch endpoint with httpx.

    Requests are split into envelopes of at most ``max_requests`` and sent one
    after another. A transport failure of one envelope fails only the requests
    in that envelope.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        site_url: Optional[str] = None,
        batch_endpoint: Optional[str] = None,
        max_requests: Optional[int] = None,
        max_retries: Optional[int] = None,
        wait: Optional[Callable[..., float]] = None,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the executor.

        Args:
            client: Authenticated client to use; one is created (and owned) if omitted
            site_url: Site URL, defaults to settings.SITE_URL
            batch_endpoint: Endpoint path, defaults to settings.BATCH_ENDPOINT
            max_requests: Envelope size, defaults to settings.BATCH_MAX_REQUESTS
            max_retries: Attempts per envelope, defaults to settings.HTTP_MAX_RETRIES
            wait: tenacity wait strategy, defaults to Retry-After aware backoff
            logger: Optional contextual logger
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)
        self._site_url = (site_url or settings.SITE_URL).rstrip("/")
        self._batch_endpoint = (batch_endpoint or settings.BATCH_ENDPOINT).lstrip("/")
        self._max_requests = max_requests or settings.BATCH_MAX_REQUESTS
        self._max_retries = max_retries or settings.HTTP_MAX_RETRIES
        self._wait = wait or wait_throttle_with_backoff
        self.logger = logger or default_logger.with_context(component="http_batch_executor")

    @property
    def endpoint_url(self) -> str:
        """Absolute URL of the batch endpoint."""
        return f"{self._site_url}/{self._batch_endpoint}"

    async def execute(
        self,
        requests: Sequence[BatchRequest],
        on_results: Optional[ResultsCallback] = None,
    ) -> List[BatchResult]:
        """Execute requests in envelopes of at most max_requests.

        The results of each envelope are handed to ``on_results`` before the
        next envelope is sent.
        """
        results: List[BatchResult] = []
        for start in range(0, len(requests), self._max_requests):
            chunk = requests[start : start + self._max_requests]
            chunk_results = await self._execute_envelope(chunk)
            if on_results is not None:
                on_results(chunk_results)
            results.extend(chunk_results)
        return results

    async def aclose(self) -> None:
        """Close the HTTP client if this executor created it."""
        if self._owns_client:
            await self._client.aclose()

    # -------------------------------------------------------------------------
    # Internal Methods
    # -------------------------------------------------------------------------

    async def _execute_envelope(self, chunk: Sequence[BatchRequest]) -> List[BatchResult]:
        envelope = {"requests": [self._serialize_request(r) for r in chunk]}
        self.logger.debug(f"[HttpBatchExecutor] Sending envelope with {len(chunk)} request(s)")

        try:
            response = await self._post_with_retry(envelope)
            payload = response.json()
        except httpx.HTTPStatusError as e:
            self.logger.error(f"[HttpBatchExecutor] Envelope rejected: {e}")
            return self._fail_all(chunk, str(e), e.response.status_code)
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error(f"[HttpBatchExecutor] Envelope failed: {e}")
            return self._fail_all(chunk, str(e))

        responses = payload.get("responses") if isinstance(payload, dict) else None
        by_id = {
            str(item.get("id")): item for item in responses or [] if isinstance(item, dict)
        }
        return [self._parse_response(r, by_id.get(r.id)) for r in chunk]

    async def _post_with_retry(self, envelope: Dict[str, Any]) -> httpx.Response:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_retries),
            retry=retry_if_throttle_or_timeout,
            wait=self._wait,
            reraise=True,
        ):
            with attempt:
                response = await self._client.post(self.endpoint_url, json=envelope)
                response.raise_for_status()
        return response

    @staticmethod
    def _serialize_request(request: BatchRequest) -> Dict[str, Any]:
        item: Dict[str, Any] = {
            "id": request.id,
            "method": request.method,
            "url": request.url,
            "headers": {**DEFAULT_REQUEST_HEADERS, **request.headers},
        }
        if request.body is not None:
            item["body"] = request.body
        return item

    @staticmethod
    def _fail_all(
        chunk: Sequence[BatchRequest], error: str, status_code: Optional[int] = None
    ) -> List[BatchResult]:
        return [
            BatchResult(request_id=r.id, success=False, error=error, status_code=status_code)
            for r in chunk
        ]

    def _parse_response(
        self, request: BatchRequest, item: Optional[Dict[str, Any]]
    ) -> BatchResult:
        if item is None:
            return BatchResult(
                request_id=request.id, success=False, error="No response for request"
            )

        status = int(item.get("status", 0))
        body = item.get("body")
        if not isinstance(body, dict):
            body = {}

        if 200 <= status < 300:
            return BatchResult(
                request_id=request.id,
                success=True,
                assigned_id=_extract_id(body),
                status_code=status,
            )

        return BatchResult(
            request_id=request.id,
            success=False,
            error=_extract_error(body) or f"HTTP {status}",
            status_code=status,
        )


def _extract_id(body: Dict[str, Any]) -> Optional[str]:
    """Read the server identity from a response body (plain or verbose OData)."""
    if "d" in body and isinstance(body["d"], dict):
        body = body["d"]
    value = body.get("Id", body.get("id"))
    return str(value) if value is not None else None


def _extract_error(body: Dict[str, Any]) -> Optional[str]:
    """Read the error message from an OData or Graph error body."""
    error = body.get("odata.error") or body.get("error")
    if not isinstance(error, dict):
        return None
    message = error.get("message")
    if isinstance(message, dict):
        message = message.get("value")
    return str(message) if message else None

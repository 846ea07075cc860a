"""Catalog lookups attaching SKU metadata to order line items."""

import asyncio
from typing import Any, Optional, Sequence
from urllib.parse import quote

import httpx

from .errors import EnrichmentError
from .logger import catalog_logger as logger
from .result import Result
from .schemas import EnrichedLineItem, LineItem

DEFAULT_TIMEOUT = 5.0


class CatalogEnrichmentClient:
    """Client for the card catalog service.

    Each SKU is looked up with ``GET /catalog/sku/{sku}``, bounded by a per-call
    timeout. ``enrich`` runs the lookups concurrently and is all-or-nothing: a failed
    lookup cancels the lookups of later items, and the failure of the earliest
    failing item in request order becomes the result.

    Attributes:
        _client: The underlying ``httpx.AsyncClient``.
        _timeout: Per-lookup timeout in seconds.
        _max_concurrency: Upper bound on lookups in flight for one order.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_concurrency: int = 10,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the catalog client.

        Args:
            base_url: Root URL of the catalog service (e.g. 'http://card-catalog:8080')
            timeout: Seconds allowed for a single lookup
            max_concurrency: Maximum concurrent lookups per ``enrich`` call
            client: Pre-built HTTP client; when omitted one is created and owned here
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._timeout = timeout
        self._max_concurrency = max_concurrency
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        logger.info(f"Catalog client ready | base_url={base_url} | timeout={timeout}s")

    @property
    def timeout(self) -> float:
        return self._timeout

    def _timeout_cause(self) -> str:
        return f"timeout of {int(self._timeout * 1000)}ms exceeded"

    async def lookup(self, sku: str) -> Result[Any, EnrichmentError]:
        """Fetch the catalog metadata of one SKU.

        Args:
            sku: Stock keeping unit to resolve

        Returns:
            Result holding the decoded metadata document, or the lookup failure.
        """
        path = f"/catalog/sku/{quote(sku, safe='')}"
        try:
            response = await asyncio.wait_for(self._client.get(path, timeout=self._timeout), self._timeout)
            response.raise_for_status()
        except (asyncio.TimeoutError, httpx.TimeoutException):
            cause = self._timeout_cause()
        except httpx.HTTPStatusError as e:
            cause = f"Request failed with status code {e.response.status_code}"
        except httpx.HTTPError as e:
            cause = str(e) or e.__class__.__name__
        else:
            try:
                return Result.ok(response.json())
            except ValueError:
                return Result.ok(response.text)

        logger.error(f"Error enriching SKU {sku}: {cause}")
        return Result.err(EnrichmentError(sku=sku, cause=cause))

    async def enrich(self, items: Sequence[LineItem]) -> Result[list[EnrichedLineItem], EnrichmentError]:
        """Attach catalog metadata to every item, keeping the request order.

        Args:
            items: Validated line items

        Returns:
            Result holding one enriched item per input item, or the failure of
            the earliest failing item in request order.
        """
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def bounded_lookup(item: LineItem) -> Result[Any, EnrichmentError]:
            async with semaphore:
                return await self.lookup(item.sku)

        tasks = [asyncio.create_task(bounded_lookup(item)) for item in items]
        index_of = {task: index for index, task in enumerate(tasks)}
        failed_at = None
        pending = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    index = index_of[task]
                    if task.result().is_err and (failed_at is None or index < failed_at):
                        failed_at = index
                if failed_at is not None:
                    # only lookups of earlier items can still change which failure is reported
                    pending = {task for task in pending if index_of[task] < failed_at}
        finally:
            outstanding = [task for task in tasks if not task.done()]
            for task in outstanding:
                task.cancel()
            if outstanding:
                logger.debug(f"Cancelled {len(outstanding)} outstanding catalog lookup(s)")
                await asyncio.gather(*outstanding, return_exceptions=True)

        if failed_at is not None:
            return tasks[failed_at].result()
        return Result.ok([EnrichedLineItem.from_item(item, task.result().value) for item, task in zip(items, tasks)])

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

"""
PokeAPI integration for the catalogue.  It exposes:

* ``PokeApiClient.fetch_list()``: the detail URLs of every Pokemon in
  the national index (one request against ``/pokemon``).

* ``PokeApiClient.fetch_detail()``: one raw ``/pokemon/{id}`` document.

* ``fetch_in_batches()``: a bounded fan-out that runs a coroutine per
  item, one batch at a time, and turns per-item fetch failures into
  ``None`` slots.

Requests use ``httpx.AsyncClient``.  Each request is attempted up to
three times with a linearly growing pause between attempts before a
``RemoteFetchError`` is raised.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

import httpx

from ..errors import RemoteFetchError


logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

MAX_ATTEMPTS = 3
RETRY_DELAY = 0.25

T = TypeVar("T")
R = TypeVar("R")


class PokeApiClient:
    """Thin async wrapper around the PokeAPI REST endpoints.

    The client does not own a connection pool; open one with
    ``async with PokeApiClient(...) as api`` for the duration of a build.
    ``transport`` is forwarded to ``httpx.AsyncClient`` and lets tests
    plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str = "https://pokeapi.co/api/v2",
        list_limit: int = 2000,
        timeout: float = 15.0,
        retry_delay: float = RETRY_DELAY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.list_limit = list_limit
        self.timeout = timeout
        self.retry_delay = retry_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "PokeApiClient":
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers={"Accept": "application/json", "User-Agent": "pokedex-api"},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_json(self, url: str) -> Any:
        """GET ``url`` and decode JSON, retrying unsuccessful attempts."""
        if self._client is None:
            raise RuntimeError("PokeApiClient must be used as an async context manager")

        attempt = 1
        while True:
            try:
                return await self._attempt(url)
            except RemoteFetchError as exc:
                if not exc.retryable or attempt >= MAX_ATTEMPTS:
                    raise
                logger.warning(
                    "PokeAPI request to %s failed (%s), attempt %s/%s",
                    url, exc.status or exc.reason, attempt, MAX_ATTEMPTS,
                )
            await asyncio.sleep(self.retry_delay * attempt)
            attempt += 1

    async def _attempt(self, url: str) -> Any:
        try:
            response = await self._client.get(url)
        except httpx.TransportError as exc:
            raise RemoteFetchError(url, reason=type(exc).__name__) from exc
        if not response.is_success:
            raise RemoteFetchError(url, status=response.status_code)
        try:
            return response.json()
        except ValueError:
            raise RemoteFetchError(
                url, status=response.status_code, reason="invalid JSON", retryable=False
            )

    async def fetch_list(self) -> List[str]:
        url = f"{self.base_url}/pokemon?offset=0&limit={self.list_limit}"
        payload = await self.fetch_json(url)
        results = payload.get("results") if isinstance(payload, dict) else None
        results = results or []
        return [entry["url"] for entry in results if isinstance(entry, dict) and entry.get("url")]

    async def fetch_detail(self, url: str) -> Dict[str, Any]:
        return await self.fetch_json(url)


async def fetch_in_batches(
    items: Sequence[T],
    batch_size: int,
    mapper: Callable[[T], Awaitable[Optional[R]]],
) -> List[Optional[R]]:
    """Run ``mapper`` over ``items`` in sequential, concurrent batches.

    The result is aligned with ``items``.  A ``RemoteFetchError`` raised
    by one call leaves ``None`` in that slot; any other exception
    propagates.
    """

    async def _guarded(item: T) -> Optional[R]:
        try:
            return await mapper(item)
        except RemoteFetchError as exc:
            logger.warning("Dropping %s: %s", item, exc)
            return None

    batch_size = max(1, batch_size)
    results: List[Optional[R]] = []
    for start in range(0, len(items), batch_size):
        batch = items[start:start + batch_size]
        results.extend(await asyncio.gather(*(_guarded(item) for item in batch)))
    return results

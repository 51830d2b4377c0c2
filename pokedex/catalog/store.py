"""
Dataset service for the catalogue API.

``PokedexService`` owns the one ``Dataset`` the API serves. It keeps the
current snapshot in memory, mirrors it to disk through ``SnapshotStore``
and rebuilds it from PokeAPI when the disk copy is missing, stale or
unreadable.

Only one non-forced build runs at a time: callers that arrive while a
build is in flight await the same task. A forced refresh always starts
its own build. Whatever the outcome, the in-flight marker is cleared
when the build settles; failures are not cached, so the next caller
starts over.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional

from pydantic import ValidationError

from ..config import Settings, parse_int
from ..errors import (
    CachePersistError,
    DatasetBuildError,
    MalformedCacheError,
    RemoteFetchError,
)
from ..storage import SnapshotStore, utcnow
from .normalize import normalize_pokemon
from .pokeapi_service import PokeApiClient, fetch_in_batches
from .query import query_pokemon
from .schemas import (
    Dataset,
    HealthResponse,
    PokemonEntry,
    PokemonPage,
    QueryParams,
    RegionCount,
    TypeCount,
)

logger = logging.getLogger(__name__)

SOURCE_LABEL = "https://pokeapi.co/"


class PokedexService:
    def __init__(
        self,
        settings: Settings,
        snapshots: Optional[SnapshotStore] = None,
        client_factory: Optional[Callable[[], PokeApiClient]] = None,
    ):
        self.settings = settings
        self.snapshots = snapshots or SnapshotStore(
            settings.cache_file, ttl_seconds=settings.cache_ttl_seconds
        )
        self._client_factory = client_factory or self._default_client
        self._dataset: Optional[Dataset] = None
        self._inflight: Optional["asyncio.Task[Dataset]"] = None

    def _default_client(self) -> PokeApiClient:
        return PokeApiClient(
            base_url=self.settings.pokeapi_base_url,
            list_limit=self.settings.list_limit,
            timeout=self.settings.request_timeout,
        )

    @property
    def current(self) -> Optional[Dataset]:
        return self._dataset

    async def get_dataset(self, force_refresh: bool = False) -> Dataset:
        """Return the current dataset, loading or building it if needed.

        Raises
        ------
        DatasetBuildError
            If a build was needed and the PokeAPI index could not be fetched.
        """
        if not force_refresh and self._dataset is not None:
            return self._dataset
        if not force_refresh and self._inflight is not None:
            return await asyncio.shield(self._inflight)

        task = asyncio.ensure_future(self._load_dataset(force_refresh))
        self._inflight = task
        task.add_done_callback(self._settle)
        # Shielded so a caller going away never cancels a build others wait on.
        return await asyncio.shield(task)

    def _settle(self, task: "asyncio.Task[Dataset]") -> None:
        if self._inflight is task:
            self._inflight = None
        if task.cancelled():
            return
        if task.exception() is None:
            self._dataset = task.result()

    async def aclose(self) -> None:
        """Cancel a build that is still running and wait for it to unwind."""
        task = self._inflight
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def _load_dataset(self, force_refresh: bool) -> Dataset:
        if not force_refresh:
            cached = await self._read_snapshot()
            if cached is not None:
                logger.info(
                    "Loaded %s Pokemon from snapshot fetched at %s",
                    cached.total_pokemon, cached.fetched_at.isoformat(),
                )
                return cached

        dataset = await self._build()
        try:
            # Snapshot file IO runs in a worker thread to keep the loop free.
            await asyncio.to_thread(self.snapshots.save, dataset)
        except CachePersistError as exc:
            logger.warning("Snapshot not persisted: %s", exc)
        return dataset

    async def _read_snapshot(self) -> Optional[Dataset]:
        try:
            return await asyncio.to_thread(self.snapshots.load)
        except MalformedCacheError as exc:
            logger.warning("Ignoring snapshot: %s", exc)
            return None

    async def _build(self) -> Dataset:
        started = time.monotonic()
        async with self._client_factory() as api:
            try:
                urls = await api.fetch_list()
            except RemoteFetchError as exc:
                raise DatasetBuildError(f"Could not fetch the Pokemon index: {exc}") from exc
            logger.info("Fetching %s Pokemon details", len(urls))

            async def _fetch_one(url: str) -> Optional[PokemonEntry]:
                raw = await api.fetch_detail(url)
                try:
                    return normalize_pokemon(raw)
                except (ValidationError, TypeError, ValueError) as exc:
                    logger.warning("Dropping %s: %s", url, exc)
                    return None

            slots = await fetch_in_batches(urls, self.settings.fetch_concurrency, _fetch_one)

        entries: List[PokemonEntry] = [entry for entry in slots if entry is not None]
        dataset = Dataset.from_entries(entries, source=SOURCE_LABEL, fetched_at=utcnow())
        logger.info(
            "Built dataset with %s Pokemon (%s references, %s dropped) in %.1fs",
            dataset.total_pokemon, len(urls), len(urls) - len(entries),
            time.monotonic() - started,
        )
        return dataset

    # ------------------------------------------------------------------
    # Read helpers used by the routes

    async def get_types(self) -> List[TypeCount]:
        dataset = await self.get_dataset()
        return [
            TypeCount(type=name, count=dataset.type_counts.get(name, 0))
            for name in dataset.types
        ]

    async def get_regions(self) -> List[RegionCount]:
        dataset = await self.get_dataset()
        return [
            RegionCount(region=name, count=count)
            for name, count in sorted(dataset.region_counts.items())
        ]

    async def get_summary(self) -> HealthResponse:
        dataset = await self.get_dataset()
        return HealthResponse(
            total_pokemon=dataset.total_pokemon,
            fetched_at=dataset.fetched_at,
            source=dataset.source,
            cache_ttl_hours=self.settings.cache_ttl_hours,
        )

    async def find_pokemon(self, identifier: str) -> Optional[PokemonEntry]:
        """Exact lowercase name first, then national dex number."""
        dataset = await self.get_dataset()
        normalized = str(identifier).strip().lower()
        for entry in dataset.pokemon:
            if entry.name == normalized:
                return entry
        number = parse_int(normalized, None)
        if number is None:
            return None
        return next((entry for entry in dataset.pokemon if entry.number == number), None)

    async def query(self, params: QueryParams) -> PokemonPage:
        dataset = await self.get_dataset()
        return query_pokemon(dataset, params)

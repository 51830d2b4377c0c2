# pokedex/storage.py
import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError

from .catalog.schemas import Dataset, PokemonEntry
from .errors import CachePersistError, MalformedCacheError


logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotStore:
    """One JSON file holding the last built ``Dataset``.

    ``load()`` returns ``None`` when there is no file or when the snapshot
    is older than ``ttl_seconds``, and raises ``MalformedCacheError`` when
    the file cannot be read or does not look like a snapshot. ``save()``
    rewrites the whole file and raises ``CachePersistError`` on failure.
    Whether those errors matter is the caller's decision.
    """

    def __init__(self, path: Path, ttl_seconds: int, clock: Callable[[], datetime] = utcnow):
        self.path = Path(path)
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()

    def load(self) -> Optional[Dataset]:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError) as exc:
            raise MalformedCacheError(f"Cannot read {self.path}: {exc}") from exc

        if not isinstance(payload, dict) or not payload.get("fetchedAt"):
            raise MalformedCacheError(f"{self.path} has no fetchedAt")
        if not isinstance(payload.get("pokemon"), list):
            raise MalformedCacheError(f"{self.path} has no pokemon array")

        try:
            fetched_at = _parse_timestamp(payload["fetchedAt"])
            entries = [PokemonEntry.model_validate(item) for item in payload["pokemon"]]
        except (ValueError, TypeError, ValidationError) as exc:
            raise MalformedCacheError(f"Invalid snapshot in {self.path}: {exc}") from exc

        age = (self._clock() - fetched_at).total_seconds()
        if age > self.ttl_seconds:
            logger.info("Snapshot %s is stale (%.0fs old)", self.path, age)
            return None

        return Dataset.from_entries(
            entries,
            source=str(payload.get("source") or ""),
            fetched_at=fetched_at,
        )

    def save(self, dataset: Dataset) -> None:
        data = dataset.model_dump_json(by_alias=True)
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                # Write next to the target, then swap, so readers never see a partial file.
                fd, tmp_name = tempfile.mkstemp(
                    dir=self.path.parent, prefix=self.path.name, suffix=".tmp"
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        f.write(data)
                    os.replace(tmp_name, self.path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
            except OSError as exc:
                raise CachePersistError(f"Cannot write {self.path}: {exc}") from exc


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

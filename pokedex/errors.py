# pokedex/errors.py
from typing import Optional


class PokedexError(Exception):
    """Base class for every error raised by the pokedex service."""


class RemoteFetchError(PokedexError):
    """A PokeAPI request failed. ``retryable`` is False for bad response bodies."""

    def __init__(
        self,
        url: str,
        status: Optional[int] = None,
        reason: str = "",
        retryable: bool = True,
    ):
        self.url = url
        self.status = status
        self.reason = reason
        self.retryable = retryable
        label = " ".join(str(part) for part in (status, reason) if part) or "network error"
        super().__init__(f"Fetch failed ({label}) for {url}")


class DatasetBuildError(PokedexError):
    pass


class MalformedCacheError(PokedexError):
    pass


class CachePersistError(PokedexError):
    pass

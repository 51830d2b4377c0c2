# pokedex/config.py
import math
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CACHE_FILE = Path(__file__).resolve().parent / ".cache" / "pokedex-cache.json"

FETCH_CONCURRENCY_RANGE = (5, 80)
CACHE_TTL_HOURS_RANGE = (1, 168)
PORT_RANGE = (1, 65535)

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


def parse_int(value: Any, fallback: Optional[int]) -> Optional[int]:
    """Read the leading integer of ``value``; ``fallback`` when there is none.

    ``"12"``, ``" 12 "`` and ``"12px"`` all give 12. ``"abc"``, ``""`` and
    ``None`` give ``fallback``.
    """
    if isinstance(value, bool):
        return fallback
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else fallback
    if value is None:
        return fallback
    match = _INT_PREFIX.match(str(value))
    return int(match.group(1)) if match else fallback


def clamp(value: Optional[int], low: int, high: int) -> int:
    if value is None:
        return low
    return max(low, min(high, value))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    pokeapi_base_url: str = Field(default="https://pokeapi.co/api/v2", alias="POKEAPI_BASE_URL")
    list_limit: int = Field(default=2000, alias="POKEAPI_LIST_LIMIT")
    fetch_concurrency: int = Field(default=35, alias="POKEDEX_FETCH_CONCURRENCY")
    cache_ttl_hours: int = Field(default=24, alias="POKEDEX_CACHE_TTL_HOURS")
    cache_file: Path = Field(default=DEFAULT_CACHE_FILE, alias="POKEDEX_CACHE_FILE")
    request_timeout: float = Field(default=15.0, alias="POKEDEX_REQUEST_TIMEOUT")
    warm_cache: bool = Field(default=True, alias="POKEDEX_WARM_CACHE")
    port: int = Field(default=3001, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Bad numeric values never abort startup; they clamp into range instead.
    @field_validator("list_limit", mode="before")
    @classmethod
    def _lenient_list_limit(cls, value: Any) -> int:
        return max(1, parse_int(value, 2000))

    @field_validator("fetch_concurrency", mode="before")
    @classmethod
    def _clamp_concurrency(cls, value: Any) -> int:
        return clamp(parse_int(value, None), *FETCH_CONCURRENCY_RANGE)

    @field_validator("cache_ttl_hours", mode="before")
    @classmethod
    def _clamp_ttl(cls, value: Any) -> int:
        return clamp(parse_int(value, None), *CACHE_TTL_HOURS_RANGE)

    @field_validator("port", mode="before")
    @classmethod
    def _clamp_port(cls, value: Any) -> int:
        return clamp(parse_int(value, 3001), *PORT_RANGE)

    @field_validator("request_timeout", mode="before")
    @classmethod
    def _positive_timeout(cls, value: Any) -> float:
        try:
            timeout = float(value)
        except (TypeError, ValueError):
            return 15.0
        return timeout if timeout > 0 else 15.0

    @field_validator("pokeapi_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def cache_ttl_seconds(self) -> int:
        return self.cache_ttl_hours * 60 * 60


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

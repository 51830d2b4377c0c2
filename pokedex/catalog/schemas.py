"""
Pydantic schema definitions for the catalog module.

``PokemonEntry`` is one normalized record and ``Dataset`` the full
snapshot built from PokeAPI. Both are frozen: a dataset is replaced
wholesale on refresh, never edited in place. JSON keys are camelCase
(``displayName``, ``specialAttack``, ``fetchedAt`` ...) so that the
payloads served over HTTP and written to the disk cache share one
layout. ``QueryParams`` is the typed form of the ``/api/pokemon`` query
string and the ``PokemonPage`` family describes the query response.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing_extensions import Literal

from ..config import clamp, parse_int


STAT_FIELDS = ("hp", "attack", "defense", "special_attack", "special_defense", "speed")

SortOrder = Literal["asc", "desc"]

SORTABLE_FIELDS = frozenset(
    {
        "number",
        "name",
        "height",
        "weight",
        "baseExperience",
        "total",
        "hp",
        "attack",
        "defense",
        "specialAttack",
        "specialDefense",
        "speed",
    }
)

DEFAULT_PAGE_SIZE = 24
MAX_PAGE_SIZE = 120


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class PokemonStats(CamelModel):
    """Base stats of one Pokemon.

    ``total`` is always derived from the six stats; any ``total`` present in
    the input (upstream payload or a cached snapshot) is discarded.
    """

    hp: int = 0
    attack: int = 0
    defense: int = 0
    special_attack: int = 0
    special_defense: int = 0
    speed: int = 0
    total: int = 0

    @model_validator(mode="before")
    @classmethod
    def _derive_total(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        values = dict(data)
        values.pop("total", None)
        total = 0
        for field in STAT_FIELDS:
            raw = values.get(field, values.get(to_camel(field), 0))
            total += int(raw or 0)
        values["total"] = total
        return values


class PokemonEntry(CamelModel):
    id: int
    number: int
    name: str
    display_name: str
    types: Tuple[str, ...] = ()
    stats: PokemonStats = Field(default_factory=PokemonStats)
    region: str = "unknown"
    generation: Optional[int] = None
    image: Optional[str] = None
    height: float = 0.0
    weight: float = 0.0
    base_experience: Optional[int] = None


class Dataset(CamelModel):
    fetched_at: datetime
    source: str
    total_pokemon: int
    pokemon: Tuple[PokemonEntry, ...]
    types: List[str] = Field(default_factory=list)
    type_counts: Dict[str, int] = Field(default_factory=dict)
    region_counts: Dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_entries(
        cls, entries: Iterable[PokemonEntry], source: str, fetched_at: datetime
    ) -> "Dataset":
        """Sort by number, keep the first entry per number and count.

        ``sorted`` is stable, so among duplicates the one that came first
        in ``entries`` survives.
        """
        pokemon: List[PokemonEntry] = []
        seen = set()
        for entry in sorted(entries, key=lambda item: item.number):
            if entry.number in seen:
                continue
            seen.add(entry.number)
            pokemon.append(entry)

        type_counts: Dict[str, int] = {}
        region_counts: Dict[str, int] = {}
        for entry in pokemon:
            region_counts[entry.region] = region_counts.get(entry.region, 0) + 1
            for type_name in entry.types:
                type_counts[type_name] = type_counts.get(type_name, 0) + 1

        return cls(
            fetched_at=fetched_at,
            source=source,
            total_pokemon=len(pokemon),
            pokemon=tuple(pokemon),
            types=sorted(type_counts),
            type_counts=type_counts,
            region_counts=region_counts,
        )

    def summary(self) -> "DatasetSummary":
        return DatasetSummary(
            total_pokemon=self.total_pokemon,
            fetched_at=self.fetched_at,
            source=self.source,
        )


class TypeCount(BaseModel):
    type: str
    count: int


class RegionCount(BaseModel):
    region: str
    count: int


class QueryParams(BaseModel):
    """Typed filters, sort and pagination for ``GET /api/pokemon``.

    Build it with :meth:`from_query`, which never rejects input: every
    malformed value degrades to "no constraint" or to its default.
    """

    q: str = ""
    types: List[str] = Field(default_factory=list)
    regions: List[str] = Field(default_factory=list)
    generations: List[int] = Field(default_factory=list)
    min_total: Optional[int] = None
    max_total: Optional[int] = None
    min_hp: Optional[int] = None
    max_hp: Optional[int] = None
    min_attack: Optional[int] = None
    max_attack: Optional[int] = None
    min_defense: Optional[int] = None
    max_defense: Optional[int] = None
    min_speed: Optional[int] = None
    max_speed: Optional[int] = None
    sort_by: str = "number"
    order: SortOrder = "asc"
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_query(cls, query: Mapping[str, Any]) -> "QueryParams":
        def get(key: str) -> Any:
            return query.get(key)

        sort_by = str(get("sortBy") or "")
        order = str(get("order") or "").strip().lower()
        return cls(
            q=str(get("q") or "").strip().lower(),
            types=split_list(get("type") or get("types")),
            regions=split_list(get("region")),
            generations=[
                number
                for number in (parse_int(item, None) for item in split_list(get("generation")))
                if number
            ],
            min_total=parse_int(get("minTotal"), None),
            max_total=parse_int(get("maxTotal"), None),
            min_hp=parse_int(get("minHp"), None),
            max_hp=parse_int(get("maxHp"), None),
            min_attack=parse_int(get("minAttack"), None),
            max_attack=parse_int(get("maxAttack"), None),
            min_defense=parse_int(get("minDefense"), None),
            max_defense=parse_int(get("maxDefense"), None),
            min_speed=parse_int(get("minSpeed"), None),
            max_speed=parse_int(get("maxSpeed"), None),
            sort_by=sort_by if sort_by in SORTABLE_FIELDS else "number",
            order="desc" if order in ("desc", "descending") else "asc",
            page=max(1, parse_int(get("page"), 1)),
            limit=clamp(parse_int(get("limit"), DEFAULT_PAGE_SIZE), 1, MAX_PAGE_SIZE),
        )


def split_list(value: Any) -> List[str]:
    if not value:
        return []
    return [item.strip().lower() for item in str(value).split(",") if item.strip()]


class PageMeta(CamelModel):
    page: int
    limit: int
    total_items: int
    total_pages: int
    has_next: bool
    has_previous: bool


class AppliedFilters(CamelModel):
    query: str
    type: List[str]
    region: List[str]
    generation: List[int]


class AppliedSort(CamelModel):
    sort_by: str
    order: SortOrder


class DatasetSummary(CamelModel):
    total_pokemon: int
    fetched_at: datetime
    source: str


class PokemonPage(CamelModel):
    items: List[PokemonEntry]
    meta: PageMeta
    filters: AppliedFilters
    sort: AppliedSort
    dataset: DatasetSummary


class HealthResponse(CamelModel):
    ok: bool = True
    status: str = "online"
    service: str = "pokedex-api"
    total_pokemon: int
    fetched_at: datetime
    source: str
    cache_ttl_hours: int


class TypeList(BaseModel):
    items: List[TypeCount]
    total: int


class RegionList(BaseModel):
    items: List[RegionCount]
    total: int


class PokemonItem(BaseModel):
    item: PokemonEntry


class RefreshResponse(CamelModel):
    ok: bool = True
    message: str = "Dataset refreshed."
    total_pokemon: int
    fetched_at: datetime

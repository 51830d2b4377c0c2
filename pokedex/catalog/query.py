"""
In-memory query engine for ``GET /api/pokemon``.

``query_pokemon()`` filters, sorts and paginates the entries of an
already-built ``Dataset``. It is a pure function: the dataset is only
read, and every parameter has already been coerced into range by
``QueryParams.from_query``, so nothing here can fail on user input.

Names sort with ``locale.strxfrm`` and therefore follow the process
``LC_COLLATE``; ``python -m pokedex`` adopts the environment locale at
startup. Under the default C locale the order is by code point.
"""

from __future__ import annotations

import locale
import math
from typing import Any, Callable, List, Optional, Tuple

from ..config import clamp
from .schemas import (
    MAX_PAGE_SIZE,
    AppliedFilters,
    AppliedSort,
    Dataset,
    PageMeta,
    PokemonEntry,
    PokemonPage,
    QueryParams,
)


def _name_key(p: PokemonEntry) -> str:
    return locale.strxfrm(p.display_name.lower())


# sortBy value -> key function. Stats come from the stats block, the
# rest from the entry itself.
_SORT_KEYS: dict = {
    "number": lambda p: p.number,
    "name": _name_key,
    "height": lambda p: p.height,
    "weight": lambda p: p.weight,
    "baseExperience": lambda p: p.base_experience or 0,
    "total": lambda p: p.stats.total,
    "hp": lambda p: p.stats.hp,
    "attack": lambda p: p.stats.attack,
    "defense": lambda p: p.stats.defense,
    "specialAttack": lambda p: p.stats.special_attack,
    "specialDefense": lambda p: p.stats.special_defense,
    "speed": lambda p: p.stats.speed,
}


def _bounds(params: QueryParams) -> List[Tuple[Callable[[PokemonEntry], int], Optional[int], Optional[int]]]:
    return [
        (lambda p: p.stats.total, params.min_total, params.max_total),
        (lambda p: p.stats.hp, params.min_hp, params.max_hp),
        (lambda p: p.stats.attack, params.min_attack, params.max_attack),
        (lambda p: p.stats.defense, params.min_defense, params.max_defense),
        (lambda p: p.stats.speed, params.min_speed, params.max_speed),
    ]


def _matches_search(pokemon: PokemonEntry, search: str) -> bool:
    if search in pokemon.name or search in pokemon.display_name.lower():
        return True
    return search in (str(pokemon.number), f"#{pokemon.number}")


def matches(pokemon: PokemonEntry, params: QueryParams, bounds: Optional[list] = None) -> bool:
    """Return ``True`` when ``pokemon`` passes every active filter.

    Types use AND semantics (the entry must carry all of them); regions
    and generations use OR semantics.
    """
    if params.types and not all(t in pokemon.types for t in params.types):
        return False
    if params.regions and pokemon.region not in params.regions:
        return False
    if params.generations and pokemon.generation not in params.generations:
        return False
    if params.q and not _matches_search(pokemon, params.q):
        return False

    for value_of, low, high in bounds if bounds is not None else _bounds(params):
        value = value_of(pokemon)
        if low is not None and value < low:
            return False
        if high is not None and value > high:
            return False
    return True


def sort_pokemon(items: List[PokemonEntry], sort_by: str, order: str) -> List[PokemonEntry]:
    # Python's sort is stable in both directions, so ties keep their
    # ascending-number order from the dataset.
    key: Callable[[PokemonEntry], Any] = _SORT_KEYS.get(sort_by, _SORT_KEYS["number"])
    return sorted(items, key=key, reverse=(order == "desc"))


def query_pokemon(dataset: Dataset, params: QueryParams) -> PokemonPage:
    bounds = _bounds(params)
    filtered = [p for p in dataset.pokemon if matches(p, params, bounds)]
    filtered = sort_pokemon(filtered, params.sort_by, params.order)

    limit = clamp(params.limit, 1, MAX_PAGE_SIZE)
    total_items = len(filtered)
    total_pages = max(1, math.ceil(total_items / limit))
    # Overshooting pages land on the last page instead of returning nothing.
    page = min(max(1, params.page), total_pages)
    offset = (page - 1) * limit

    return PokemonPage(
        items=filtered[offset:offset + limit],
        meta=PageMeta(
            page=page,
            limit=limit,
            total_items=total_items,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1,
        ),
        filters=AppliedFilters(
            query=params.q,
            type=params.types,
            region=params.regions,
            generation=params.generations,
        ),
        sort=AppliedSort(sort_by=params.sort_by, order=params.order),
        dataset=dataset.summary(),
    )

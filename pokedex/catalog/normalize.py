"""
Mapping from raw PokeAPI documents to ``PokemonEntry`` records.

``normalize_pokemon()`` is the single entry point. It returns ``None``
for records that should not appear in the catalogue (alternate forms,
missing or non-positive ids) so callers can simply drop them.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from .schemas import PokemonEntry, PokemonStats


# (start, end, region, generation); ranges are inclusive and do not overlap.
REGION_RANGES: Tuple[Tuple[int, int, str, int], ...] = (
    (1, 151, "kanto", 1),
    (152, 251, "johto", 2),
    (252, 386, "hoenn", 3),
    (387, 493, "sinnoh", 4),
    (494, 649, "unova", 5),
    (650, 721, "kalos", 6),
    (722, 809, "alola", 7),
    (810, 905, "galar", 8),
    (906, 1025, "paldea", 9),
)

UNKNOWN_REGION = "unknown"

# Upstream stat name -> PokemonStats field
STAT_NAMES = {
    "hp": "hp",
    "attack": "attack",
    "defense": "defense",
    "special-attack": "special_attack",
    "special-defense": "special_defense",
    "speed": "speed",
}


def region_for_number(number: int) -> Tuple[str, Optional[int]]:
    """Return ``(region, generation)`` for a national dex number."""
    for start, end, region, generation in REGION_RANGES:
        if start <= number <= end:
            return region, generation
    return UNKNOWN_REGION, None


def format_display_name(name: str) -> str:
    """``"mr-mime"`` -> ``"Mr Mime"``."""
    return " ".join(word[:1].upper() + word[1:] for word in name.split("-"))


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def normalize_stats(stats: Any) -> PokemonStats:
    values: Dict[str, int] = {field: 0 for field in STAT_NAMES.values()}
    for stat in _list(stats):
        name = _dict(_dict(stat).get("stat")).get("name")
        field = STAT_NAMES.get(name) if isinstance(name, str) else None
        if field is None:
            continue
        values[field] = int(_number(stat.get("base_stat")))
    return PokemonStats(**values)


def normalize_types(types: Any) -> Tuple[str, ...]:
    slots = [entry for entry in _list(types) if isinstance(entry, dict)]
    slots.sort(key=lambda entry: _number(entry.get("slot")))
    names: List[str] = []
    for entry in slots:
        name = _dict(entry.get("type")).get("name")
        if name and isinstance(name, str):
            names.append(name)
    return tuple(names)


def _pick_image(sprites: Any) -> Optional[str]:
    sprites = _dict(sprites)
    other = _dict(sprites.get("other"))
    candidates = (
        _dict(other.get("official-artwork")).get("front_default"),
        _dict(other.get("home")).get("front_default"),
        sprites.get("front_default"),
    )
    return next((url for url in candidates if url and isinstance(url, str)), None)


def normalize_pokemon(raw: Any) -> Optional[PokemonEntry]:
    """Flatten one ``/pokemon/{id}`` document.

    Returns ``None`` when the record is not a JSON object, is not the
    default form or lacks a positive integer id. Nested blocks of the
    wrong shape fall back to empty values instead of raising.
    """
    if not isinstance(raw, dict) or not raw.get("is_default"):
        return None
    number = raw.get("id")
    if isinstance(number, bool) or not isinstance(number, int) or number <= 0:
        return None

    name = raw.get("name")
    name = name.lower() if isinstance(name, str) else ""
    base_experience = raw.get("base_experience")
    if isinstance(base_experience, bool) or not isinstance(base_experience, int):
        base_experience = None
    region, generation = region_for_number(number)
    return PokemonEntry(
        id=number,
        number=number,
        name=name,
        display_name=format_display_name(name),
        types=normalize_types(raw.get("types")),
        stats=normalize_stats(raw.get("stats")),
        region=region,
        generation=generation,
        image=_pick_image(raw.get("sprites")),
        # decimetres -> metres, hectograms -> kilograms
        height=_number(raw.get("height")) / 10,
        weight=_number(raw.get("weight")) / 10,
        base_experience=base_experience,
    )

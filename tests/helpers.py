from typing import Dict, List, Optional, Sequence

import httpx


BASE_URL = "https://pokeapi.test/api/v2"

STAT_ORDER = ("hp", "attack", "defense", "special-attack", "special-defense", "speed")


def raw_pokemon(
    number: int,
    name: str,
    types: Sequence[str] = ("normal",),
    stats: Sequence[int] = (50, 50, 50, 50, 50, 50),
    is_default: bool = True,
    height: int = 10,
    weight: int = 100,
    base_experience: Optional[int] = 64,
    artwork: Optional[str] = "https://img.test/art.png",
) -> Dict:
    """A trimmed-down PokeAPI ``/pokemon/{id}`` document."""
    return {
        "id": number,
        "name": name,
        "is_default": is_default,
        "height": height,
        "weight": weight,
        "base_experience": base_experience,
        "types": [
            {"slot": slot, "type": {"name": type_name}}
            for slot, type_name in enumerate(types, start=1)
        ],
        "stats": [
            {"base_stat": value, "stat": {"name": stat_name}}
            for stat_name, value in zip(STAT_ORDER, stats)
        ],
        "sprites": {
            "front_default": "https://img.test/front.png",
            "other": {"official-artwork": {"front_default": artwork}, "home": {}},
        },
    }


SAMPLE_POKEMON: List[Dict] = [
    raw_pokemon(1, "bulbasaur", ("grass", "poison"), (45, 49, 49, 65, 65, 45)),
    raw_pokemon(4, "charmander", ("fire",), (39, 52, 43, 60, 50, 65)),
    raw_pokemon(6, "charizard", ("fire", "flying"), (78, 84, 78, 109, 85, 100)),
    raw_pokemon(25, "pikachu", ("electric",), (35, 55, 40, 50, 50, 90)),
    raw_pokemon(122, "mr-mime", ("psychic", "fairy"), (40, 45, 65, 100, 120, 90)),
    raw_pokemon(155, "cyndaquil", ("fire",), (39, 52, 43, 60, 50, 65)),
    raw_pokemon(250, "ho-oh", ("fire", "flying"), (106, 130, 90, 110, 154, 90)),
    raw_pokemon(384, "rayquaza", ("dragon", "flying"), (105, 150, 90, 150, 90, 95)),
    raw_pokemon(1026, "mystery", ("normal",), (10, 10, 10, 10, 10, 10)),
]


class FakePokeApi:
    """In-memory PokeAPI served through ``httpx.MockTransport``.

    ``failures`` maps a URL to the number of 500 responses to return
    before it starts answering normally; use a large number for a
    permanently broken URL.
    """

    def __init__(self, documents: Sequence[Dict] = SAMPLE_POKEMON):
        self.documents = {doc["id"]: doc for doc in documents}
        self.failures: Dict[str, int] = {}
        self.calls: Dict[str, int] = {}
        self.extra_urls: List[str] = []

    def list_url(self) -> str:
        return f"{BASE_URL}/pokemon"

    def detail_url(self, number: int) -> str:
        return f"{BASE_URL}/pokemon/{number}/"

    @property
    def list_calls(self) -> int:
        return sum(count for url, count in self.calls.items() if url.startswith(self.list_url() + "?"))

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls[url] = self.calls.get(url, 0) + 1
        key = url.split("?")[0]
        remaining = self.failures.get(key, 0)
        if remaining > 0:
            self.failures[key] = remaining - 1
            return httpx.Response(500, json={"detail": "boom"})

        if key == self.list_url():
            results = [
                {"name": doc["name"], "url": self.detail_url(number)}
                for number, doc in self.documents.items()
            ]
            results.extend({"name": "extra", "url": extra} for extra in self.extra_urls)
            return httpx.Response(200, json={"count": len(results), "results": results})

        number = int(key.rstrip("/").split("/")[-1])
        if number not in self.documents:
            return httpx.Response(404, json={"detail": "Not found."})
        return httpx.Response(200, json=self.documents[number])

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

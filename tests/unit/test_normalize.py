from pokedex.catalog.normalize import (
    REGION_RANGES,
    format_display_name,
    normalize_pokemon,
    region_for_number,
)
from tests.helpers import raw_pokemon


def test_region_for_number_uses_range_table():
    assert region_for_number(1) == ("kanto", 1)
    assert region_for_number(151) == ("kanto", 1)
    assert region_for_number(152) == ("johto", 2)
    assert region_for_number(1025) == ("paldea", 9)
    assert region_for_number(1026) == ("unknown", None)
    assert region_for_number(0) == ("unknown", None)


def test_region_ranges_do_not_overlap():
    previous_end = 0
    for start, end, _, _ in REGION_RANGES:
        assert start == previous_end + 1
        assert end >= start
        previous_end = end


def test_format_display_name():
    assert format_display_name("bulbasaur") == "Bulbasaur"
    assert format_display_name("mr-mime") == "Mr Mime"
    assert format_display_name("ho-oh") == "Ho Oh"


def test_normalize_pokemon_flattens_record():
    entry = normalize_pokemon(
        raw_pokemon(6, "charizard", ("fire", "flying"), (78, 84, 78, 109, 85, 100), height=17, weight=905)
    )
    assert entry.id == 6
    assert entry.number == 6
    assert entry.name == "charizard"
    assert entry.display_name == "Charizard"
    assert entry.types == ("fire", "flying")
    assert entry.stats.special_attack == 109
    assert entry.stats.total == 534
    assert entry.region == "kanto"
    assert entry.generation == 1
    assert entry.height == 1.7
    assert entry.weight == 90.5
    assert entry.base_experience == 64
    assert entry.image == "https://img.test/art.png"


def test_types_are_ordered_by_slot():
    raw = raw_pokemon(6, "charizard")
    raw["types"] = [
        {"slot": 2, "type": {"name": "flying"}},
        {"slot": 1, "type": {"name": "fire"}},
    ]
    assert normalize_pokemon(raw).types == ("fire", "flying")


def test_stats_ignore_unknown_names_and_default_missing_to_zero():
    raw = raw_pokemon(25, "pikachu")
    raw["stats"] = [
        {"base_stat": 35, "stat": {"name": "hp"}},
        {"base_stat": 999, "stat": {"name": "accuracy"}},
        {"base_stat": 90, "stat": {"name": "speed"}},
    ]
    stats = normalize_pokemon(raw).stats
    assert stats.hp == 35
    assert stats.attack == 0
    assert stats.speed == 90
    assert stats.total == 125


def test_upstream_total_is_never_trusted():
    raw = raw_pokemon(25, "pikachu", stats=(1, 2, 3, 4, 5, 6))
    raw["stats"].append({"base_stat": 1000, "stat": {"name": "total"}})
    assert normalize_pokemon(raw).stats.total == 21


def test_non_default_forms_are_dropped():
    assert normalize_pokemon(raw_pokemon(10034, "charizard-mega-x", is_default=False)) is None


def test_invalid_ids_are_dropped():
    assert normalize_pokemon(raw_pokemon(0, "missingno")) is None
    assert normalize_pokemon(raw_pokemon(-3, "missingno")) is None
    raw = raw_pokemon(1, "bulbasaur")
    raw["id"] = "1"
    assert normalize_pokemon(raw) is None
    assert normalize_pokemon({}) is None


def test_image_falls_back_through_candidates():
    raw = raw_pokemon(1, "bulbasaur", artwork=None)
    raw["sprites"]["other"]["home"] = {"front_default": "https://img.test/home.png"}
    assert normalize_pokemon(raw).image == "https://img.test/home.png"

    raw["sprites"]["other"] = {}
    assert normalize_pokemon(raw).image == "https://img.test/front.png"

    raw["sprites"] = None
    assert normalize_pokemon(raw).image is None


def test_missing_base_experience_stays_null():
    assert normalize_pokemon(raw_pokemon(1, "bulbasaur", base_experience=None)).base_experience is None


def test_non_object_documents_are_dropped():
    assert normalize_pokemon([1]) is None
    assert normalize_pokemon("bulbasaur") is None
    assert normalize_pokemon(None) is None


def test_wrongly_shaped_sprites_give_no_image():
    raw = raw_pokemon(2, "ivysaur")
    raw["sprites"] = "not-a-dict"
    assert normalize_pokemon(raw).image is None

    raw["sprites"] = {"other": ["official-artwork"], "front_default": "https://img.test/front.png"}
    assert normalize_pokemon(raw).image == "https://img.test/front.png"

    raw["sprites"] = {"other": {"official-artwork": "art.png", "home": None}, "front_default": 7}
    assert normalize_pokemon(raw).image is None


def test_wrongly_shaped_stats_and_types_are_skipped():
    raw = raw_pokemon(25, "pikachu", ("electric",))
    raw["stats"] = [
        "hp",
        {"base_stat": 35, "stat": "hp"},
        {"base_stat": "fast", "stat": {"name": "speed"}},
        {"base_stat": 55, "stat": {"name": "attack"}},
    ]
    raw["types"] = [
        {"slot": "2", "type": {"name": "steel"}},
        {"slot": 1, "type": "electric"},
        "fairy",
        {"slot": None, "type": {"name": "electric"}},
    ]
    entry = normalize_pokemon(raw)
    assert entry.stats.hp == 0
    assert entry.stats.speed == 0
    assert entry.stats.attack == 55
    assert entry.stats.total == 55
    assert set(entry.types) == {"steel", "electric"}


def test_non_numeric_measurements_default_to_zero():
    raw = raw_pokemon(1, "bulbasaur")
    raw["height"] = "7"
    raw["weight"] = None
    raw["stats"] = None
    raw["types"] = {"slot": 1}
    entry = normalize_pokemon(raw)
    assert entry.height == 0
    assert entry.weight == 0
    assert entry.stats.total == 0
    assert entry.types == ()

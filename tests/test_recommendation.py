import random
from types import SimpleNamespace

import pytest

from errors import EmptyWardrobe, NoViableOutfits
from services.recommendation import (
    CATEGORY_ORDER,
    RECOMMENDATION_COUNT,
    WeatherPreferences,
    WeatherSnapshot,
    generate_recommendations,
    is_weather_appropriate,
)


def item(id, name, category):
    return SimpleNamespace(id=id, name=name, category_name=category, image_url=None)


MILD = WeatherSnapshot(temperature=20, condition="sunny")


def big_wardrobe():
    items = []
    for i in range(6):
        items.append(item(i * 3 + 1, f"Shirt {i}", "tops"))
        items.append(item(i * 3 + 2, f"Chinos {i}", "bottoms"))
        items.append(item(i * 3 + 3, f"Blazer {i}", "outerwear"))
    items.append(item(100, "Sneakers", "shoes"))
    return items


def test_empty_wardrobe_raises():
    with pytest.raises(EmptyWardrobe):
        generate_recommendations([], MILD)


@pytest.mark.parametrize("seed", [0, 1, 7, 42])
def test_candidates_are_well_formed(seed):
    candidates = generate_recommendations(big_wardrobe(), MILD, rng=random.Random(seed))

    assert 1 <= len(candidates) <= RECOMMENDATION_COUNT
    seen = set()
    for candidate in candidates:
        assert 2 <= len(candidate.items) <= 3
        ids = [i.id for i in candidate.items]
        assert not seen.intersection(ids)
        seen.update(ids)
        order = [CATEGORY_ORDER[i.category_name] for i in candidate.items]
        assert order == sorted(order)
        assert candidate.id.startswith("rec_")
        assert 1 <= candidate.rating <= 5
        assert candidate.weather == "sunny"
        assert candidate.temperature == 20
        assert candidate.description == "Perfect for sunny weather at 20°C"


def test_only_tops_bottoms_and_outerwear_are_used():
    candidates = generate_recommendations(big_wardrobe(), MILD, rng=random.Random(3))
    categories = {i.category_name for c in candidates for i in c.items}
    assert categories <= {"tops", "bottoms", "outerwear"}


def test_full_wardrobe_fills_every_attempt():
    candidates = generate_recommendations(big_wardrobe(), MILD, rng=random.Random(5))
    assert len(candidates) == RECOMMENDATION_COUNT
    assert [c.name for c in candidates] == [f"Weather-Appropriate Outfit {n}" for n in range(1, 5)]
    assert all(len(c.items) == 3 for c in candidates)


def test_items_are_not_reused_once_exhausted():
    wardrobe = [item(1, "Shirt", "tops"), item(2, "Chinos", "bottoms"),
                item(3, "Polo", "tops"), item(4, "Jeans", "bottoms"), item(5, "Tee", "tops")]
    candidates = generate_recommendations(wardrobe, MILD, rng=random.Random(0))
    # Two pairs can be formed, the leftover top alone is dropped
    assert len(candidates) == 2
    used = [i.id for c in candidates for i in c.items]
    assert len(used) == len(set(used)) == 4
    assert {2, 4} <= set(used)


def test_category_matching_ignores_case():
    wardrobe = [item(1, "Shirt", "Tops"), item(2, "Chinos", "BOTTOMS")]
    candidates = generate_recommendations(wardrobe, MILD, rng=random.Random(0))
    assert [i.id for i in candidates[0].items] == [1, 2]


def test_sweater_and_jeans_on_a_cold_day_yield_nothing():
    wardrobe = [item(1, "Sweater", "tops"), item(2, "Jeans", "bottoms")]
    cold = WeatherSnapshot(temperature=10, condition="cloudy")

    with pytest.raises(NoViableOutfits):
        generate_recommendations(wardrobe, cold, rng=random.Random(0))


def test_sweater_and_jacket_on_a_cold_day():
    wardrobe = [item(1, "Sweater", "tops"), item(2, "Jeans", "bottoms"), item(3, "Denim Jacket", "outerwear")]
    cold = WeatherSnapshot(temperature=10, condition="cloudy")

    candidates = generate_recommendations(wardrobe, cold, rng=random.Random(0))

    assert len(candidates) == 1
    assert [i.name for i in candidates[0].items] == ["Sweater", "Denim Jacket"]
    assert candidates[0].description == "Perfect for cloudy weather at 10°C"


def test_single_qualifying_item_is_not_an_outfit():
    hot = WeatherSnapshot(temperature=30, condition="sunny")
    with pytest.raises(NoViableOutfits):
        generate_recommendations([item(1, "Dress Shirt", "tops")], hot, rng=random.Random(0))


def test_hot_weather_drops_sweaters_only():
    hot = WeatherSnapshot(temperature=30, condition="sunny")
    wardrobe = [item(1, "Wool Sweater", "tops"), item(2, "Linen Shirt", "tops"), item(3, "Shorts", "bottoms")]

    candidates = generate_recommendations(wardrobe, hot, rng=random.Random(0))

    assert len(candidates) == 1
    assert [i.name for i in candidates[0].items] == ["Linen Shirt", "Shorts"]


def test_rain_requires_rain_gear():
    rainy = WeatherSnapshot(temperature=18, condition="rainy")
    wardrobe = [item(1, "T-Shirt", "tops"), item(2, "Rain Pants", "bottoms"),
                item(3, "Waterproof Jacket", "outerwear")]

    candidates = generate_recommendations(wardrobe, rainy, rng=random.Random(0))

    assert [i.id for i in candidates[0].items] == [2, 3]


@pytest.mark.parametrize("name, temperature, condition, expected", [
    ("Wool Coat", 5, "snowy", True),
    ("Jeans", 5, "snowy", False),
    ("Jeans", 15, "sunny", True),
    ("Jeans", 25, "sunny", True),
    ("Cardigan", 30, "sunny", True),
    ("Cable Sweater", 26, "sunny", False),
    # Heat is checked before rain
    ("Cotton Shirt", 30, "rainy", True),
    ("Cotton Shirt", 20, "rainy", False),
    ("Rain Boots", 20, "rainy", True),
    ("Cotton Shirt", 20, "cloudy", True),
])
def test_is_weather_appropriate(name, temperature, condition, expected):
    weather = WeatherSnapshot(temperature=temperature, condition=condition)
    assert is_weather_appropriate(item(1, name, "tops"), weather) is expected


def test_preferences_do_not_change_the_selection():
    wardrobe = big_wardrobe()
    plain = generate_recommendations(wardrobe, MILD, rng=random.Random(11))
    with_prefs = generate_recommendations(
        wardrobe, MILD, WeatherPreferences(min_temperature=0, max_temperature=5, preferred_conditions=["snowy"]),
        rng=random.Random(11))

    assert [[i.id for i in c.items] for c in plain] == [[i.id for i in c.items] for c in with_prefs]


def test_fractional_temperature_is_kept_in_description():
    weather = WeatherSnapshot(temperature=21.5, condition="cloudy")
    candidates = generate_recommendations(big_wardrobe(), weather, rng=random.Random(0))
    assert candidates[0].description == "Perfect for cloudy weather at 21.5°C"

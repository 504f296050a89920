"""Weather-driven outfit suggestions built from a user's wardrobe.

The matching is a keyword heuristic over item names, not a structured
attribute system. Results are randomised: items are sampled uniformly within
each category and every outfit gets a random rating.
"""

import random
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import schemas
from errors import EmptyWardrobe, NoViableOutfits

CATEGORY_ORDER = {"tops": 0, "bottoms": 1, "outerwear": 2}
RECOMMENDATION_COUNT = 4
MIN_OUTFIT_ITEMS = 2

COLD_LIMIT = 15
HOT_LIMIT = 25
COLD_KEYWORDS = ("sweater", "jacket", "coat")
HOT_KEYWORDS = ("t-shirt", "shorts")
RAIN_KEYWORDS = ("rain", "waterproof")

CANDIDATE_PREFIX = "rec_"


@dataclass(frozen=True)
class WeatherSnapshot:
    temperature: float
    condition: str


@dataclass
class WeatherPreferences:
    min_temperature: float = 15
    max_temperature: float = 25
    preferred_conditions: List[str] = field(default_factory=lambda: ["sunny", "cloudy"])


def is_weather_appropriate(item, weather: WeatherSnapshot) -> bool:
    name = (item.name or "").lower()

    if weather.temperature < COLD_LIMIT:
        return any(keyword in name for keyword in COLD_KEYWORDS)
    elif weather.temperature > HOT_LIMIT:
        # Anything but a sweater passes in hot weather
        return any(keyword in name for keyword in HOT_KEYWORDS) or "sweater" not in name

    if weather.condition == "rainy":
        return any(keyword in name for keyword in RAIN_KEYWORDS)

    return True


def _category_of(item) -> str:
    return (item.category_name or "").lower()


def _format_temperature(temperature: float):
    return int(temperature) if float(temperature).is_integer() else temperature


def generate_recommendations(
    items: Sequence,
    weather: WeatherSnapshot,
    preferences: Optional[WeatherPreferences] = None,
    rng: random.Random = None,
) -> List[schemas.CandidateOutfit]:
    """
    Assemble up to four candidate outfits from the given wardrobe items.

    Each attempt picks at most one weather-appropriate item per category
    (tops, bottoms, outerwear). No item is used twice within one call and an
    attempt that gathers fewer than two items is dropped, not retried.

    ``preferences`` is accepted but currently unused by the keyword rules.

    Raises EmptyWardrobe when ``items`` is empty and NoViableOutfits when no
    attempt produced an outfit.
    """
    if not items:
        raise EmptyWardrobe()

    rng = rng or random
    temperature = _format_temperature(weather.temperature)
    stamp = int(time.time() * 1000)

    recommendations = []
    used_items = set()

    for i in range(RECOMMENDATION_COUNT):
        picked = []
        for category in CATEGORY_ORDER:
            available = [
                item for item in items
                if _category_of(item) == category
                and item.id not in used_items
                and is_weather_appropriate(item, weather)
            ]
            if available:
                selected = rng.choice(available)
                picked.append(selected)
                used_items.add(selected.id)

        if len(picked) < MIN_OUTFIT_ITEMS:
            continue

        picked.sort(key=lambda item: CATEGORY_ORDER[_category_of(item)])
        recommendations.append(schemas.CandidateOutfit(
            id=f"{CANDIDATE_PREFIX}{stamp}_{i}",
            name=f"Weather-Appropriate Outfit {i + 1}",
            description=f"Perfect for {weather.condition} weather at {temperature}°C",
            items=[schemas.ItemSummary.model_validate(item) for item in picked],
            weather=weather.condition,
            temperature=weather.temperature,
            rating=rng.randint(1, 5),
        ))

    if not recommendations:
        raise NoViableOutfits()
    return recommendations


def preferences_from_row(row) -> WeatherPreferences:
    if row is None:
        return WeatherPreferences()
    return WeatherPreferences(
        min_temperature=row.min_temperature,
        max_temperature=row.max_temperature,
        preferred_conditions=list(row.preferred_conditions or []),
    )


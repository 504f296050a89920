from collections import Counter
from typing import Iterable, List


def _distribution(values: Iterable[str], key: str) -> List[dict]:
    counts = Counter(values)
    return [{key: value.capitalize(), "count": count} for value, count in counts.items()]


def wardrobe_stats(items) -> dict:
    items = list(items)
    seasons = [season.lower() for item in items for season in (item.seasons or [])]
    return {
        "categoryDistribution": _distribution(
            ((item.category_name or "uncategorized").lower() for item in items), "category"),
        "colorDistribution": _distribution(((item.color or "other").lower() for item in items), "color"),
        "seasonDistribution": _distribution(seasons, "season"),
        "totalItems": len(items),
    }


def outfit_stats(outfits) -> dict:
    outfits = list(outfits)
    favorite_categories = []
    for outfit in outfits:
        if outfit.is_favorite:
            first = outfit.items[0] if outfit.items else None
            favorite_categories.append(((first.category_name if first else None) or "other").lower())
    return {
        "usageDistribution": _distribution(((outfit.occasion or "casual").lower() for outfit in outfits), "occasion"),
        "favoriteDistribution": _distribution(favorite_categories, "category"),
        "weatherDistribution": _distribution(((outfit.weather or "sunny").lower() for outfit in outfits), "weather"),
        "totalOutfits": len(outfits),
    }

"""OpenWeather client used for the weather endpoints and live recommendation snapshots."""

import logging
import re
from typing import Optional

import requests
from fastapi import Depends

from config import Settings, get_settings
from errors import CityNotFound, DependencyError, RateLimitedError
from services.recommendation import WeatherSnapshot

logger = logging.getLogger(__name__)

# Kabete is not resolvable by name, so it is looked up by coordinates
KNOWN_COORDINATES = {
    "kabete": {"lat": -1.25, "lon": 36.75, "name": "Kabete"},
}

CONDITION_MAP = {
    "clear": "sunny",
    "clouds": "cloudy",
    "rain": "rainy",
    "drizzle": "rainy",
    "thunderstorm": "rainy",
    "snow": "snowy",
}


def clean_city_name(city: str) -> str:
    cleaned = city.strip().lower()
    cleaned = re.sub(r"[^\w\s-]", "", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned)
    cleaned = re.sub(r"\b(ward|district|county)\b", "", cleaned, flags=re.IGNORECASE)
    return cleaned.strip()


def _known_location(city: str) -> Optional[dict]:
    cleaned = clean_city_name(city)
    if cleaned in KNOWN_COORDINATES:
        return KNOWN_COORDINATES[cleaned]
    return next((coords for key, coords in KNOWN_COORDINATES.items() if key in city.lower()), None)


def condition_from_main(main: Optional[str]) -> str:
    """Collapse an OpenWeather ``weather[0].main`` value into a snapshot condition."""
    return CONDITION_MAP.get((main or "").lower(), "cloudy")


class WeatherService:
    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def _request(self, endpoint: str, city: str) -> dict:
        if not self.settings.weather_configured:
            raise DependencyError("OpenWeather API key is not configured")

        cleaned = clean_city_name(city)
        base_params = {"appid": self.settings.openweather_api_key, "units": "metric"}
        url = f"{self.settings.openweather_base_url}/{endpoint}"

        known = _known_location(city)

        try:
            if known:
                return self._get(url, {**base_params, "lat": known["lat"], "lon": known["lon"]})
            try:
                return self._get(url, {**base_params, "q": f"{cleaned},{self.settings.weather_country_code}"})
            except requests.HTTPError as first_error:
                if first_error.response is None or first_error.response.status_code != 404:
                    raise
                # The cleaned name may have dropped something meaningful, try the raw input
                return self._get(url, {**base_params, "q": f"{city},{self.settings.weather_country_code}"})
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            logger.error("Weather API error for city=%r (cleaned=%r): status=%s", city, cleaned, status_code)
            if status_code == 404:
                raise CityNotFound(f'City "{city}" not found. Please check the city name and try again.')
            if status_code == 401:
                raise DependencyError("Invalid API key. Please check your OpenWeather API configuration.")
            if status_code == 429:
                raise RateLimitedError("Too many requests to the weather API. Please try again later.")
            raise DependencyError(f"Failed to fetch weather data: {e}")
        except requests.RequestException as e:
            logger.error("Weather API request failed for city=%r: %s", city, e)
            raise DependencyError(f"Failed to fetch weather data: {e}")

    def _get(self, url: str, params: dict) -> dict:
        response = self.session.get(url, params=params, timeout=self.settings.weather_timeout)
        response.raise_for_status()
        return response.json()

    def get_current_weather(self, city: str) -> dict:
        data = self._request("weather", city)
        known = _known_location(city)
        return {
            "temperature": data["main"]["temp"],
            "feelsLike": data["main"].get("feels_like"),
            "humidity": data["main"].get("humidity"),
            "description": data["weather"][0].get("description"),
            "icon": data["weather"][0].get("icon"),
            "windSpeed": data.get("wind", {}).get("speed"),
            "city": known["name"] if known else data.get("name"),
            "country": data.get("sys", {}).get("country"),
            "condition": condition_from_main(data["weather"][0].get("main")),
        }

    def get_forecast(self, city: str) -> list:
        data = self._request("forecast", city)
        return [
            {
                "date": entry.get("dt_txt"),
                "temperature": entry["main"]["temp"],
                "feelsLike": entry["main"].get("feels_like"),
                "humidity": entry["main"].get("humidity"),
                "description": entry["weather"][0].get("description"),
                "icon": entry["weather"][0].get("icon"),
                "windSpeed": entry.get("wind", {}).get("speed"),
            }
            for entry in data.get("list", [])
        ]

    def default_snapshot(self) -> WeatherSnapshot:
        return WeatherSnapshot(temperature=self.settings.default_temperature,
                               condition=self.settings.default_condition)

    def snapshot(self, city: Optional[str] = None) -> WeatherSnapshot:
        """Live snapshot for ``city`` when possible, otherwise the configured stand-in."""
        if not city or not self.settings.weather_configured:
            return self.default_snapshot()
        current = self.get_current_weather(city)
        return WeatherSnapshot(temperature=current["temperature"], condition=current["condition"])


def get_weather_service(settings: Settings = Depends(get_settings)) -> WeatherService:
    return WeatherService(settings)

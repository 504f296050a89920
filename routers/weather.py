from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from models import User, WeatherPreferences
from schemas import CurrentWeather, ForecastEntry, WeatherPreferencesResponse, WeatherPreferencesUpdate
from oauth import get_current_user
from services.weather import WeatherService, get_weather_service

router = APIRouter(
    prefix="/api/weather",
    tags=["weather"]
)


def _require_city(city: Optional[str]) -> str:
    if not city or not city.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="City parameter is required")
    return city


@router.get("/current", response_model=CurrentWeather)
def get_current_weather(
    city: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    weather_service: WeatherService = Depends(get_weather_service)
):
    return weather_service.get_current_weather(_require_city(city))


@router.get("/forecast", response_model=List[ForecastEntry])
def get_forecast(
    city: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    weather_service: WeatherService = Depends(get_weather_service)
):
    return weather_service.get_forecast(_require_city(city))


@router.get("/preferences", response_model=WeatherPreferencesResponse)
def get_weather_preferences(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    preferences = db.query(WeatherPreferences).filter(WeatherPreferences.user_id == current_user.id).first()
    if not preferences:
        # Create default preferences if none exist
        preferences = WeatherPreferences(
            user_id=current_user.id,
            min_temperature=15,
            max_temperature=25,
            preferred_conditions=["sunny", "cloudy"]
        )
        db.add(preferences)
        db.commit()
        db.refresh(preferences)
    return preferences


@router.put("/preferences", response_model=WeatherPreferencesResponse)
def update_weather_preferences(
    preferences: WeatherPreferencesUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    db_preferences = db.query(WeatherPreferences).filter(WeatherPreferences.user_id == current_user.id).first()
    if not db_preferences:
        db_preferences = WeatherPreferences(user_id=current_user.id)
        db.add(db_preferences)

    for key, value in preferences.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(db_preferences, key, value)

    if (db_preferences.min_temperature is not None and db_preferences.max_temperature is not None
            and db_preferences.min_temperature > db_preferences.max_temperature):
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Minimum temperature cannot be above maximum temperature")

    db.commit()
    db.refresh(db_preferences)
    return db_preferences

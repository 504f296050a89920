import re
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, EmailStr, Field, field_validator

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,30}$")


def _check_password_strength(password: str) -> str:
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters long")
    if not re.search(r"\d", password) or not re.search(r"[a-zA-Z]", password):
        raise ValueError("Password must contain at least one letter and one number")
    return password


def _check_username(username: str) -> str:
    username = username.strip()
    if not USERNAME_PATTERN.match(username):
        raise ValueError(
            "Username must be 3-30 characters long and can only contain letters, numbers, and underscores"
        )
    return username


# ---- Accounts ----

class UserCreate(BaseModel):
    email: EmailStr
    password: str
    username: str

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("username")
    @classmethod
    def validate_username(cls, value):
        return _check_username(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value):
        return _check_password_strength(value)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class UserOut(BaseModel):
    id: int
    email: EmailStr
    username: str
    created_at: Optional[datetime] = None
    is_verified: bool = False

    class Config:
        from_attributes = True


class ProfileOut(BaseModel):
    id: int
    username: str
    email: EmailStr
    bio: Optional[str] = None
    avatar: Optional[str] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value):
        return _check_username(value) if value is not None else value

    @field_validator("bio")
    @classmethod
    def strip_bio(cls, value):
        return value.strip() if value is not None else value


class TokenPair(BaseModel):
    accessToken: str
    refreshToken: str
    user: UserOut


class RefreshRequest(BaseModel):
    refreshToken: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, value):
        return _check_password_strength(value)


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, value):
        return _check_password_strength(value)


# ---- Wardrobe ----

class WardrobeItemOut(BaseModel):
    id: int
    user_id: int
    category_id: int
    category_name: Optional[str] = None
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    color: Optional[str] = None
    brand: Optional[str] = None
    seasons: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ItemSummary(BaseModel):
    id: int
    name: str
    image_url: Optional[str] = None
    category_name: Optional[str] = None

    class Config:
        from_attributes = True


class WardrobeStats(BaseModel):
    categoryDistribution: List[dict]
    colorDistribution: List[dict]
    seasonDistribution: List[dict]
    totalItems: int


# ---- Outfits ----

class CandidateOutfit(BaseModel):
    id: str
    name: str
    description: str
    items: List[ItemSummary]
    weather: str
    temperature: float
    rating: int


class OutfitResponse(BaseModel):
    id: int
    user_id: int
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    occasion: Optional[str] = None
    weather: Optional[str] = None
    is_favorite: bool
    saved_for_later: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[ItemSummary] = []

    class Config:
        from_attributes = True


class OutfitStats(BaseModel):
    usageDistribution: List[dict]
    favoriteDistribution: List[dict]
    weatherDistribution: List[dict]
    totalOutfits: int


class SaveOutfitRequest(BaseModel):
    # A string id is a transient recommendation, an integer id an existing outfit
    id: Union[int, str]
    name: str
    description: Optional[str] = None
    items: List[ItemSummary] = []
    occasion: Optional[str] = None
    season: Optional[str] = None
    weather: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)


class RemoveSavedOutfitRequest(BaseModel):
    id: int


class SavedOutfitResponse(BaseModel):
    id: int
    outfit_id: int
    user_id: int
    name: str
    description: Optional[str] = None
    occasion: Optional[str] = None
    season: Optional[str] = None
    weather: Optional[str] = None
    rating: Optional[int] = None
    items: List[dict] = []
    saved_at: Optional[datetime] = None
    outfit_image: Optional[str] = None

    class Config:
        from_attributes = True


class SaveOutfitResponse(BaseModel):
    message: str
    savedOutfit: SavedOutfitResponse


# ---- Weather ----

class CurrentWeather(BaseModel):
    temperature: float
    feelsLike: Optional[float] = None
    humidity: Optional[float] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    windSpeed: Optional[float] = None
    city: Optional[str] = None
    country: Optional[str] = None
    condition: str


class ForecastEntry(BaseModel):
    date: Optional[str] = None
    temperature: float
    feelsLike: Optional[float] = None
    humidity: Optional[float] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    windSpeed: Optional[float] = None


class WeatherPreferencesBase(BaseModel):
    min_temperature: float = 15
    max_temperature: float = 25
    preferred_conditions: List[str] = ["sunny", "cloudy"]


class WeatherPreferencesUpdate(BaseModel):
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    preferred_conditions: Optional[List[str]] = None


class WeatherPreferencesResponse(WeatherPreferencesBase):
    user_id: int

    class Config:
        from_attributes = True


# ---- Chatbot ----

class ChatRequest(BaseModel):
    message: Optional[str] = None


class ChatResponse(BaseModel):
    message: str

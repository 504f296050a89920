from database import Base
from sqlalchemy import (Column, Integer, String, Text, TIMESTAMP, ForeignKey, JSON, Float, Boolean,
                        Table, UniqueConstraint, func)
from sqlalchemy.orm import relationship

# ORM models for the wardrobe service: users, their clothing items, outfits
# built from those items and the outfits they saved.

DEFAULT_CATEGORIES = ["tops", "bottoms", "outerwear", "dresses", "shoes", "accessories"]


outfit_items = Table(
    "outfit_items",
    Base.metadata,
    Column("outfit_id", Integer, ForeignKey("outfits.id", ondelete="CASCADE"), primary_key=True),
    Column("wardrobe_item_id", Integer, ForeignKey("wardrobe_items.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, nullable=False, index=True)
    email = Column(String, nullable=False, unique=True)
    username = Column(String, nullable=False, unique=True)
    password = Column(String, nullable=False)
    bio = Column(Text, nullable=True)
    avatar = Column(String, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String, nullable=True)
    reset_token = Column(String, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    wardrobe_items = relationship("WardrobeItem", back_populates="owner", cascade="all, delete-orphan")
    outfits = relationship("Outfit", back_populates="user", cascade="all, delete-orphan")
    saved_outfits = relationship("SavedOutfit", back_populates="user", cascade="all, delete-orphan")
    weather_preferences = relationship("WeatherPreferences", uselist=False, back_populates="user",
                                       cascade="all, delete-orphan")


class Category(Base):
    __tablename__ = "categories"
    id = Column(Integer, primary_key=True, nullable=False, index=True)
    name = Column(String, nullable=False, unique=True)


class WardrobeItem(Base):
    __tablename__ = "wardrobe_items"
    id = Column(Integer, primary_key=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    color = Column(String, nullable=True)
    brand = Column(String, nullable=True)
    seasons = Column(JSON, nullable=False, default=list)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="wardrobe_items")
    category = relationship("Category", lazy="joined")
    outfits = relationship("Outfit", secondary=outfit_items, back_populates="items")

    @property
    def category_name(self):
        return self.category.name if self.category else None


class Outfit(Base):
    __tablename__ = "outfits"
    id = Column(Integer, primary_key=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    occasion = Column(String, nullable=True)
    weather = Column(String, nullable=True)
    # Id of the recommendation this outfit was created from, if any
    candidate_id = Column(String, nullable=True, index=True)
    is_favorite = Column(Boolean, nullable=False, default=False)
    saved_for_later = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="outfits")
    items = relationship("WardrobeItem", secondary=outfit_items, back_populates="outfits")
    saved_entries = relationship("SavedOutfit", back_populates="outfit", cascade="all, delete-orphan")


class WeatherPreferences(Base):
    __tablename__ = "weather_preferences"
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    min_temperature = Column(Float, nullable=False, default=15)
    max_temperature = Column(Float, nullable=False, default=25)
    preferred_conditions = Column(JSON, nullable=False, default=lambda: ["sunny", "cloudy"])
    user = relationship("User", back_populates="weather_preferences")


class SavedOutfit(Base):
    __tablename__ = "saved_outfits"
    __table_args__ = (UniqueConstraint("outfit_id", "user_id", name="uq_saved_outfit_user"),)
    id = Column(Integer, primary_key=True, nullable=False, index=True)
    outfit_id = Column(Integer, ForeignKey("outfits.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    occasion = Column(String, nullable=True)
    season = Column(String, nullable=True)
    weather = Column(String, nullable=True)
    rating = Column(Integer, nullable=True)
    items = Column(JSON, nullable=False, default=list)
    saved_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="saved_outfits")
    outfit = relationship("Outfit", back_populates="saved_entries")

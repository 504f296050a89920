"""Shared fixtures: an in-memory database, test settings and a fake weather upstream."""

import io
import os
import tempfile

# Settings are read once at import time by database.py and main.py
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="wardrobe-uploads-"))

import pytest
import requests
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import models
import utils
from config import Settings, get_settings
from database import get_db, init_db
from main import app
from rate_limits import limiter
from services.weather import WeatherService, get_weather_service

PASSWORD = "secret123"


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeWeatherSession:
    """Stands in for ``requests.Session``; replies are consumed in order."""

    def __init__(self):
        self.responses = []
        self.calls = []

    def queue(self, status_code=200, payload=None):
        self.responses.append(FakeResponse(status_code, payload))

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if not self.responses:
            raise requests.ConnectionError("no fake response queued")
        return self.responses.pop(0)


def weather_payload(temp=10.0, main="Clouds", name="Nairobi"):
    return {
        "main": {"temp": temp, "feels_like": temp - 1, "humidity": 70},
        "weather": [{"main": main, "description": main.lower(), "icon": "04d"}],
        "wind": {"speed": 3.5},
        "name": name,
        "sys": {"country": "KE"},
    }


def png_bytes(color="red"):
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        secret_key="test-secret",
        upload_dir=str(tmp_path / "uploads"),
        openweather_api_key="test-key",
        email_sender="",
        email_password="",
        environment="test",
    )


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def weather_session():
    return FakeWeatherSession()


@pytest.fixture
def client(session_factory, settings, weather_session):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_weather_service] = lambda: WeatherService(settings, session=weather_session)
    # Counters live in process memory and would leak between tests
    limiter.reset()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def signup(client, email="ada@wardrobe.io", username="ada", password=PASSWORD):
    response = client.post("/api/auth/signup", json={"email": email, "password": password, "username": username})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def auth(client):
    """Tokens and user for a freshly signed-up account."""
    return signup(client)


@pytest.fixture
def auth_headers(auth):
    return {"Authorization": f"Bearer {auth['accessToken']}"}


def create_user(db, email="grace@wardrobe.io", username="grace"):
    user = models.User(email=email, username=username, password=utils.hash(PASSWORD))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_item(db, user, name, category, color=None, seasons=None):
    category_row = db.query(models.Category).filter(models.Category.name == category).one()
    item = models.WardrobeItem(user_id=user.id, category_id=category_row.id, name=name, color=color,
                               seasons=seasons or [])
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def user_by_email(db, email="ada@wardrobe.io"):
    db.expire_all()
    return db.query(models.User).filter(models.User.email == email).one()


def break_commits(monkeypatch):
    """Make every following ``Session.commit`` fail until ``monkeypatch.undo()``."""
    def commit(self):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(Session, "commit", commit)

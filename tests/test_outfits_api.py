import os

import pytest

import services.saved_outfits
from conftest import create_item, png_bytes, user_by_email, weather_payload
from main import app
from services.weather import get_weather_service


@pytest.fixture
def wardrobe(db, auth):
    user = user_by_email(db)
    return [
        create_item(db, user, "Sweater", "tops"),
        create_item(db, user, "Jeans", "bottoms"),
        create_item(db, user, "Denim Jacket", "outerwear"),
    ]


def test_recommendations_for_an_empty_wardrobe(client, auth_headers):
    response = client.get("/api/outfits/recommendations", headers=auth_headers)

    assert response.status_code == 404
    assert response.json() == {
        "message": "No wardrobe items found. Please add some items to your wardrobe first."
    }


def test_recommendations_use_the_stand_in_weather(client, auth_headers, wardrobe, weather_session):
    response = client.get("/api/outfits/recommendations", headers=auth_headers)

    assert response.status_code == 200
    candidates = response.json()
    assert candidates[0]["weather"] == "sunny"
    assert candidates[0]["temperature"] == 20
    assert len(candidates[0]["items"]) == 3
    assert weather_session.calls == []


def test_recommendations_for_a_city(client, auth_headers, wardrobe, weather_session):
    weather_session.queue(payload=weather_payload(temp=10, main="Clouds"))

    response = client.get("/api/outfits/recommendations", params={"city": "Nairobi"}, headers=auth_headers)

    assert response.status_code == 200
    candidates = response.json()
    assert len(candidates) == 1
    assert [item["name"] for item in candidates[0]["items"]] == ["Sweater", "Denim Jacket"]
    assert candidates[0]["description"] == "Perfect for cloudy weather at 10°C"


def test_no_viable_outfits(client, db, auth, auth_headers, weather_session):
    create_item(db, user_by_email(db), "Dress Shirt", "tops")
    weather_session.queue(payload=weather_payload(temp=30, main="Clear"))

    response = client.get("/api/outfits/recommendations", params={"city": "Mombasa"}, headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["message"].startswith("Could not generate recommendations")


def test_unexpected_recommendation_failure(client, auth_headers, wardrobe):
    class BrokenWeather:
        def snapshot(self, city=None):
            raise RuntimeError("thermometer on fire")

    app.dependency_overrides[get_weather_service] = lambda: BrokenWeather()

    response = client.get("/api/outfits/recommendations", headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"message": "Failed to generate recommendations", "error": "thermometer on fire"}


def test_save_and_remove_a_recommendation(client, auth_headers, wardrobe):
    candidate = client.get("/api/outfits/recommendations", headers=auth_headers).json()[0]
    payload = {**candidate, "occasion": "work", "season": "winter"}

    response = client.post("/api/outfits/saved", json=payload, headers=auth_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Outfit saved successfully"
    outfit_id = body["savedOutfit"]["outfit_id"]
    assert len(body["savedOutfit"]["items"]) == 3

    response = client.post("/api/outfits/saved", json=payload, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"message": "Outfit is already saved"}

    saved = client.get("/api/outfits/saved", headers=auth_headers).json()
    assert [entry["outfit_id"] for entry in saved] == [outfit_id]

    response = client.request("DELETE", "/api/outfits/saved", json={"id": outfit_id}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Outfit removed from saved items"}

    response = client.request("DELETE", "/api/outfits/saved", json={"id": outfit_id}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"message": "Saved outfit not found"}

    # The materialized outfit stays in the user's outfits
    assert [o["id"] for o in client.get("/api/outfits/", headers=auth_headers).json()] == [outfit_id]


def test_save_rejects_bad_rating(client, auth_headers, wardrobe):
    payload = {"id": "rec_1_0", "name": "Outfit", "items": [], "rating": 9}
    assert client.post("/api/outfits/saved", json=payload, headers=auth_headers).status_code == 400


def test_outfit_crud(client, auth_headers, wardrobe):
    response = client.post("/api/outfits/", headers=auth_headers, data={
        "name": "Friday", "occasion": "work", "weather": "cloudy", "items": [wardrobe[0].id, wardrobe[1].id],
    })
    assert response.status_code == 201
    outfit = response.json()
    assert {item["name"] for item in outfit["items"]} == {"Sweater", "Jeans"}
    assert outfit["is_favorite"] is False

    response = client.put(f"/api/outfits/{outfit['id']}", headers=auth_headers,
                          data={"name": "Casual Friday", "items": [wardrobe[2].id]})
    assert response.status_code == 200
    assert response.json()["name"] == "Casual Friday"
    assert [item["name"] for item in response.json()["items"]] == ["Denim Jacket"]

    assert client.put(f"/api/outfits/{outfit['id']}/favorite", headers=auth_headers).json()["is_favorite"] is True
    assert client.put(f"/api/outfits/{outfit['id']}/save", headers=auth_headers).json()["saved_for_later"] is True

    stats = client.get("/api/outfits/stats", headers=auth_headers).json()
    assert stats["totalOutfits"] == 1
    assert stats["usageDistribution"] == [{"occasion": "Work", "count": 1}]
    assert stats["favoriteDistribution"] == [{"category": "Outerwear", "count": 1}]
    assert stats["weatherDistribution"] == [{"weather": "Cloudy", "count": 1}]

    assert client.delete(f"/api/outfits/{outfit['id']}", headers=auth_headers).status_code == 200
    assert client.get("/api/outfits/", headers=auth_headers).json() == []
    assert client.put(f"/api/outfits/{outfit['id']}/favorite", headers=auth_headers).status_code == 404


def test_outfit_with_foreign_items(client, auth_headers):
    response = client.post("/api/outfits/", headers=auth_headers, data={"name": "Ghost", "items": [12345]})
    assert response.status_code == 404
    assert response.json() == {"message": "One or more wardrobe items not found"}


def stored_path(settings, url):
    return os.path.join(settings.upload_dir, os.path.basename(url))


def test_outfit_image_lifecycle(client, settings, auth_headers, wardrobe):
    response = client.post("/api/outfits/", headers=auth_headers, data={"name": "Friday", "items": [wardrobe[0].id]},
                           files={"image": ("look.png", png_bytes(), "image/png")})
    assert response.status_code == 201
    outfit = response.json()
    assert outfit["image_url"].startswith(f"{settings.backend_url}/uploads/outfit-")
    first = stored_path(settings, outfit["image_url"])
    assert os.path.exists(first)

    response = client.put(f"/api/outfits/{outfit['id']}", headers=auth_headers,
                          files={"image": ("new.png", png_bytes("blue"), "image/png")})
    assert response.status_code == 200
    updated = response.json()
    assert updated["name"] == "Friday"
    assert updated["image_url"] != outfit["image_url"]
    assert not os.path.exists(first)
    second = stored_path(settings, updated["image_url"])
    assert os.path.exists(second)

    response = client.post("/api/outfits/saved", headers=auth_headers,
                           json={"id": outfit["id"], "name": "Friday", "items": []})
    assert response.status_code == 201
    saved = client.get("/api/outfits/saved", headers=auth_headers).json()
    assert saved[0]["outfit_image"] == updated["image_url"]

    assert client.delete(f"/api/outfits/{outfit['id']}", headers=auth_headers).status_code == 200
    assert not os.path.exists(second)


def test_outfit_rejects_non_image_uploads(client, settings, auth_headers):
    response = client.post("/api/outfits/", headers=auth_headers, data={"name": "Friday"},
                           files={"image": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 400
    assert not os.path.isdir(settings.upload_dir) or os.listdir(settings.upload_dir) == []


def test_save_rejects_unknown_string_ids(client, auth_headers):
    response = client.post("/api/outfits/saved", headers=auth_headers, json={"id": "5", "name": "Outfit", "items": []})
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid outfit id"}


def test_unexpected_remove_failure(client, monkeypatch, auth_headers):
    def remove_saved_outfit(db, user, outfit_id):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(services.saved_outfits, "remove_saved_outfit", remove_saved_outfit)

    response = client.request("DELETE", "/api/outfits/saved", json={"id": 1}, headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"message": "Failed to remove saved outfit", "error": "connection reset"}

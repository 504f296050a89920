"""Small HTTP client for the wardrobe API.

Keeps the access/refresh token pair, sends the access token as a bearer
header and, on a 401, refreshes once and replays the request. When the
refresh itself fails the stored tokens are cleared and the error is raised.
"""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class WardrobeAPIClientError(Exception):
    def __init__(self, status_code: int, message: str, payload: Optional[dict] = None):
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}
        super().__init__(f"{status_code}: {message}")


class WardrobeClient:
    def __init__(self, base_url: str = "http://localhost:8000/api", session: Optional[requests.Session] = None,
                 timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self.user: Optional[dict] = None

    # ---- Plumbing ----

    def _store_tokens(self, data: dict) -> dict:
        self.access_token = data.get("accessToken")
        self.refresh_token = data.get("refreshToken")
        self.user = data.get("user", self.user)
        return data

    def clear_tokens(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.user = None

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return self.session.request(method, f"{self.base_url}{path}", headers=headers,
                                    timeout=self.timeout, **kwargs)

    def _refresh(self) -> bool:
        if not self.refresh_token:
            return False
        response = self.session.post(f"{self.base_url}/auth/refresh-token",
                                     json={"refreshToken": self.refresh_token}, timeout=self.timeout)
        if response.status_code != 200:
            logger.info("Token refresh failed with status %s", response.status_code)
            self.clear_tokens()
            return False
        self._store_tokens(response.json())
        return True

    def request(self, method: str, path: str, **kwargs):
        response = self._send(method, path, **kwargs)
        if response.status_code == 401 and self.refresh_token:
            if self._refresh():
                response = self._send(method, path, **kwargs)
        return self._handle(response)

    @staticmethod
    def _handle(response: requests.Response):
        try:
            data = response.json()
        except ValueError:
            data = None
        if response.status_code >= 400:
            message = data.get("message") if isinstance(data, dict) else response.text
            raise WardrobeAPIClientError(response.status_code, message or response.reason, data)
        return data

    # ---- Auth ----

    def signup(self, email: str, password: str, username: str) -> dict:
        return self._store_tokens(self.request("POST", "/auth/signup",
                                               json={"email": email, "password": password, "username": username}))

    def login(self, email: str, password: str) -> dict:
        return self._store_tokens(self.request("POST", "/auth/login", json={"email": email, "password": password}))

    def logout(self) -> None:
        try:
            self.request("POST", "/auth/logout")
        finally:
            self.clear_tokens()

    def get_profile(self) -> dict:
        return self.request("GET", "/auth/profile")

    def update_profile(self, **updates) -> dict:
        return self.request("PATCH", "/auth/profile", json=updates)

    def change_password(self, current_password: str, new_password: str) -> dict:
        return self.request("PUT", "/auth/change-password",
                            json={"current_password": current_password, "new_password": new_password})

    # ---- Wardrobe ----

    def get_wardrobe(self) -> list:
        return self.request("GET", "/wardrobe/")

    def get_wardrobe_stats(self) -> dict:
        return self.request("GET", "/wardrobe/stats")

    def add_item(self, name: str, category: str, image: bytes, filename: str = "item.png",
                 content_type: str = "image/png", **fields) -> dict:
        data = {"name": name, "category_id": category, **fields}
        return self.request("POST", "/wardrobe/", data=data, files={"image": (filename, image, content_type)})

    def delete_item(self, item_id: int) -> dict:
        return self.request("DELETE", f"/wardrobe/{item_id}")

    # ---- Outfits ----

    def get_outfits(self) -> list:
        return self.request("GET", "/outfits/")

    def create_outfit(self, name: str, items: list, image: Optional[bytes] = None, filename: str = "outfit.png",
                      content_type: str = "image/png", **fields) -> dict:
        data = {"name": name, "items": items, **fields}
        files = {"image": (filename, image, content_type)} if image is not None else None
        return self.request("POST", "/outfits/", data=data, files=files)

    def get_recommendations(self, city: Optional[str] = None) -> list:
        params = {"city": city} if city else None
        return self.request("GET", "/outfits/recommendations", params=params)

    def save_outfit(self, outfit: dict) -> dict:
        return self.request("POST", "/outfits/saved", json=outfit)

    def remove_saved_outfit(self, outfit_id: int) -> dict:
        return self.request("DELETE", "/outfits/saved", json={"id": outfit_id})

    def get_saved_outfits(self) -> list:
        return self.request("GET", "/outfits/saved")

    # ---- Weather & chatbot ----

    def get_current_weather(self, city: str) -> dict:
        return self.request("GET", "/weather/current", params={"city": city})

    def get_forecast(self, city: str) -> list:
        return self.request("GET", "/weather/forecast", params={"city": city})

    def send_chat_message(self, message: str) -> str:
        return self.request("POST", "/chatbot/message", json={"message": message})["message"]

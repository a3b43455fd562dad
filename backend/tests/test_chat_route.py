from fastapi.testclient import TestClient

from atmosai import main as main_module
from atmosai.config import Settings
from atmosai.schemas import ResolvedLocation, WeatherRecord
from atmosai.services.weather_client import WeatherUnavailable, normalize_weatherapi


TOKYO_PAYLOAD = {
    "location": {"name": "Tokyo", "region": "Tokyo", "country": "Japan"},
    "current": {"temp_c": 22, "condition": {"text": "Partly cloudy"}, "is_day": 1},
}


class _FakeWeatherClient:
    def __init__(
        self,
        places: dict | None = None,
        error: Exception | None = None,
        record: WeatherRecord | None = None,
    ) -> None:
        self.places = places or {}
        self.error = error
        self.record = record
        self.geocode_calls: list[str] = []
        self.fetch_calls: list[ResolvedLocation] = []

    async def close(self) -> None:
        return None

    async def geocode(self, query: str, language: str = "en") -> ResolvedLocation | None:
        self.geocode_calls.append(query)
        return self.places.get(query)

    async def fetch_current(self, location: ResolvedLocation, language: str = "en"):
        self.fetch_calls.append(location)
        if self.error is not None:
            raise self.error
        if self.record is not None:
            return self.record
        return normalize_weatherapi(TOKYO_PAYLOAD)


class _FakeModelClient:
    def __init__(self, reply: str = "Wear a light jacket and visit Ueno Park.", city: str | None = None) -> None:
        self.reply = reply
        self.city = city
        self.prompts: list[str] = []
        self.extract_calls: list[str] = []

    async def close(self) -> None:
        return None

    async def ask(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply

    async def extract_city(self, message: str) -> str | None:
        self.extract_calls.append(message)
        return self.city


def _install(monkeypatch, weather=None, model=None, settings=None):
    weather = weather or _FakeWeatherClient()
    model = model or _FakeModelClient()
    monkeypatch.setattr(main_module, "weather_client", weather)
    monkeypatch.setattr(main_module, "model_client", model)
    monkeypatch.setattr(
        main_module,
        "settings",
        settings or Settings(weatherapi_key="weather-key", gemini_api_key="gemini-key"),
    )
    return weather, model, TestClient(main_module.app)


def test_chat_with_coordinates_returns_reply_and_weather(monkeypatch) -> None:
    weather, model, client = _install(monkeypatch)

    response = client.post(
        "/api/chat",
        json={"message": "What should I wear in Tokyo today?", "lat": 35.6895, "lon": 139.6917, "lang": "en"},
    )
    assert response.status_code == 200
    payload = response.json()

    assert payload["reply"]
    assert payload["weather"]["city"] == "Tokyo"
    assert payload["weather"]["temp"] == 22
    assert payload["weather"]["condition"] == "Partly cloudy"
    assert payload["weather"]["visibility"] == 0
    assert payload["weather"]["sunrise"] == "Unknown"
    assert payload["speech_language"] == "en-US"
    assert weather.geocode_calls == []
    assert weather.fetch_calls[0].latitude == 35.6895
    assert "What should I wear in Tokyo today?" in model.prompts[0]


def test_chat_without_location_asks_for_it_in_japanese(monkeypatch) -> None:
    weather, model, client = _install(monkeypatch, settings=Settings())

    response = client.post("/api/chat", json={"message": "今日は何を着ればいい？", "lang": "ja"})
    assert response.status_code == 200
    assert response.json() == {
        "needsLocation": True,
        "reply": "位置情報が必要です。現在地の使用を許可してください。",
    }
    assert weather.fetch_calls == []
    assert model.prompts == []


def test_chat_with_only_language_asks_for_location_first(monkeypatch) -> None:
    weather, model, client = _install(monkeypatch)

    response = client.post("/api/chat", json={"lang": "ja"})
    assert response.status_code == 200
    assert response.json() == {
        "needsLocation": True,
        "reply": "位置情報が必要です。現在地の使用を許可してください。",
    }
    assert weather.geocode_calls == []
    assert weather.fetch_calls == []
    assert model.prompts == []


def test_chat_blank_message_without_location_asks_for_location(monkeypatch) -> None:
    weather, model, client = _install(monkeypatch, settings=Settings())

    response = client.post("/api/chat", json={"message": "  "})
    assert response.status_code == 200
    assert response.json() == {
        "needsLocation": True,
        "reply": "Location is required. Please allow access to your current location.",
    }
    assert weather.fetch_calls == []
    assert model.extract_calls == []


def test_chat_without_message_prompts_for_one(monkeypatch) -> None:
    _, _, client = _install(monkeypatch)

    response = client.post("/api/chat", json={"message": "   ", "location": "Tokyo"})
    assert response.status_code == 200
    assert response.json() == {"needsMessage": True, "reply": "Please enter a message."}


def test_chat_accepts_alternate_field_names(monkeypatch) -> None:
    tokyo = ResolvedLocation(name="Tokyo", latitude=35.6895, longitude=139.6917)
    weather, model, client = _install(monkeypatch, weather=_FakeWeatherClient(places={"Tokyo": tokyo}))

    response = client.post(
        "/api/chat",
        json={"query": "Plan a day out", "city": "Tokyo", "topic": "travel", "lang": "ja-JP"},
    )
    assert response.status_code == 200
    assert response.json()["speech_language"] == "ja-JP"
    assert weather.geocode_calls == ["Tokyo"]
    assert "旅行プランナーAI" in model.prompts[0]


def test_chat_unknown_location_returns_needs_location(monkeypatch) -> None:
    weather, model, client = _install(monkeypatch)

    response = client.post("/api/chat", json={"message": "Any plans?", "location": "Nowhereville"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["needsLocation"] is True
    assert payload["reply"] == "I couldn't find that location. Please try another city name."
    assert model.extract_calls == ["Any plans?"]
    assert weather.fetch_calls == []


def test_chat_falls_back_to_city_named_in_message(monkeypatch) -> None:
    osaka = ResolvedLocation(name="Osaka", latitude=34.6937, longitude=135.5023)
    weather, _, client = _install(
        monkeypatch,
        weather=_FakeWeatherClient(places={"Osaka": osaka}),
        model=_FakeModelClient(city="Osaka"),
    )

    response = client.post(
        "/api/chat",
        json={"message": "Is it umbrella weather in Osaka?", "location": "near the castle"},
    )
    assert response.status_code == 200
    assert weather.geocode_calls == ["near the castle", "Osaka"]
    assert weather.fetch_calls[0].name == "Osaka"


def test_chat_weather_failure_returns_500_without_weather(monkeypatch) -> None:
    _, _, client = _install(monkeypatch, weather=_FakeWeatherClient(error=WeatherUnavailable("down")))

    response = client.post("/api/chat", json={"message": "Hi", "lat": 35.0, "lon": 139.0})
    assert response.status_code == 500
    payload = response.json()
    assert "error" in payload
    assert "weather" not in payload


def test_chat_unexpected_error_is_generic_500(monkeypatch) -> None:
    _, _, client = _install(monkeypatch, weather=_FakeWeatherClient(error=KeyError("boom")))

    response = client.post("/api/chat", json={"message": "Hi", "lat": 35.0, "lon": 139.0})
    assert response.status_code == 500
    assert response.json() == {"error": "Server error"}


def test_chat_empty_model_reply_uses_localized_fallback(monkeypatch) -> None:
    _, _, client = _install(monkeypatch, model=_FakeModelClient(reply=""))

    response = client.post("/api/chat", json={"message": "服装は？", "lat": 35.0, "lon": 139.0, "lang": "ja"})
    assert response.status_code == 200
    assert response.json()["reply"] == "プランの生成に失敗しました。もう一度お試しください。"


def test_chat_missing_api_keys_returns_500(monkeypatch) -> None:
    weather, _, client = _install(monkeypatch, settings=Settings(gemini_api_key="gemini-key"))

    response = client.post("/api/chat", json={"message": "Hi", "lat": 35.0, "lon": 139.0})
    assert response.status_code == 500
    assert response.json() == {"error": "Missing API keys"}
    assert weather.fetch_calls == []


def test_chat_malformed_body_returns_500(monkeypatch) -> None:
    _, _, client = _install(monkeypatch)

    response = client.post("/api/chat", json=["not", "an", "object"])
    assert response.status_code == 500
    assert response.json() == {"error": "Server error"}


def test_chat_unserializable_weather_is_generic_500(monkeypatch) -> None:
    broken = WeatherRecord(temp=float("nan"), city="Tokyo")
    _, _, client = _install(monkeypatch, weather=_FakeWeatherClient(record=broken))

    response = client.post("/api/chat", json={"message": "Hi", "lat": 35.0, "lon": 139.0})
    assert response.status_code == 500
    assert response.json() == {"error": "Server error"}

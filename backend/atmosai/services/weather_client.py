from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from atmosai.config import MissingConfiguration, Settings
from atmosai.schemas import ResolvedLocation, WeatherRecord


logger = structlog.get_logger(__name__)

NUMERIC_FIELDS = (
    "temp",
    "feels_like",
    "temp_min",
    "temp_max",
    "humidity",
    "wind_speed",
    "wind_deg",
    "visibility",
    "clouds",
)
TEXT_FIELDS = ("main_weather", "condition", "sunrise", "sunset", "city", "region", "country")


class WeatherUnavailable(RuntimeError):
    """The weather provider failed or returned an unusable payload."""


@dataclass
class WeatherClient:
    settings: Settings
    transport: httpx.AsyncBaseTransport | None = None
    _client: httpx.AsyncClient = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._client = httpx.AsyncClient(
            timeout=self.settings.request_timeout_seconds,
            transport=self.transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def geocode(self, query: str, language: str = "en") -> ResolvedLocation | None:
        query = query.strip()
        if not query:
            return None

        payload = await self._get_json(
            url=self.settings.open_meteo_geo_url,
            params={"name": query, "count": 1, "language": language, "format": "json"},
        )
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list) or not results:
            return None

        first = results[0] if isinstance(results[0], dict) else {}
        latitude = _as_float(first.get("latitude"))
        longitude = _as_float(first.get("longitude"))
        if latitude is None or longitude is None:
            return None
        return ResolvedLocation(name=first.get("name") or query, latitude=latitude, longitude=longitude)

    async def fetch_current(self, location: ResolvedLocation, language: str = "en") -> WeatherRecord:
        provider = self.settings.weather_provider
        if provider is None:
            raise MissingConfiguration("Missing WEATHERAPI_KEY or OPENWEATHER_API_KEY")

        try:
            if provider == "weatherapi":
                payload = await self._get_json(
                    url=self.settings.weatherapi_url,
                    params={
                        "key": self.settings.weatherapi_key,
                        "q": f"{location.latitude},{location.longitude}",
                        "lang": language,
                    },
                )
                record = normalize_weatherapi(payload)
            else:
                payload = await self._get_json(
                    url=self.settings.openweather_url,
                    params={
                        "lat": location.latitude,
                        "lon": location.longitude,
                        "units": "metric",
                        "lang": language,
                        "appid": self.settings.openweather_api_key,
                    },
                )
                record = normalize_openweather(payload)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("weather_fetch_failed", provider=provider, error=str(exc))
            raise WeatherUnavailable("Failed to fetch weather") from exc

        logger.info("weather_fetched", provider=provider, city=record.city)
        return record

    async def _get_json(self, *, url: str, params: dict[str, Any] | None = None) -> Any:
        response = await self._client.get(url, params=params)
        response.raise_for_status()
        return response.json()


def normalize_weatherapi(payload: Any) -> WeatherRecord:
    """Map a WeatherAPI.com ``current.json`` payload onto :class:`WeatherRecord`."""
    if not isinstance(payload, dict):
        raise ValueError("WeatherAPI payload is not an object.")

    location = _as_dict(payload.get("location"))
    current = _as_dict(payload.get("current"))
    condition = current.get("condition")
    condition_text = condition.get("text") if isinstance(condition, dict) else condition

    wind_kph = _as_float(current.get("wind_kph"))
    visibility_km = _as_float(current.get("vis_km"))
    is_day = _as_int(current.get("is_day"))

    return build_weather_record(
        {
            "temp": current.get("temp_c"),
            "feels_like": current.get("feelslike_c"),
            "humidity": current.get("humidity"),
            "wind_speed": round(wind_kph / 3.6, 1) if wind_kph is not None else None,
            "wind_deg": current.get("wind_degree"),
            "main_weather": condition_text,
            "condition": condition_text,
            "visibility": visibility_km * 1000 if visibility_km is not None else None,
            "clouds": current.get("cloud"),
            "is_day": is_day == 1 if is_day is not None else None,
            "city": location.get("name"),
            "region": location.get("region"),
            "country": location.get("country"),
        }
    )


def normalize_openweather(payload: Any) -> WeatherRecord:
    """Map an OpenWeatherMap ``data/2.5/weather`` payload onto :class:`WeatherRecord`."""
    if not isinstance(payload, dict):
        raise ValueError("OpenWeatherMap payload is not an object.")

    main = _as_dict(payload.get("main"))
    wind = _as_dict(payload.get("wind"))
    clouds = _as_dict(payload.get("clouds"))
    sys_block = _as_dict(payload.get("sys"))
    weather_items = payload.get("weather")
    weather = _as_dict(weather_items[0]) if isinstance(weather_items, list) and weather_items else {}

    offset = _as_int(payload.get("timezone")) or 0
    observed = _as_int(payload.get("dt"))
    sunrise = _as_int(sys_block.get("sunrise"))
    sunset = _as_int(sys_block.get("sunset"))
    is_day = None
    if observed is not None and sunrise is not None and sunset is not None:
        is_day = sunrise <= observed < sunset

    return build_weather_record(
        {
            "temp": main.get("temp"),
            "feels_like": main.get("feels_like"),
            "temp_min": main.get("temp_min"),
            "temp_max": main.get("temp_max"),
            "humidity": main.get("humidity"),
            "wind_speed": wind.get("speed"),
            "wind_deg": wind.get("deg"),
            "main_weather": weather.get("main"),
            "condition": weather.get("description"),
            "visibility": payload.get("visibility"),
            "clouds": clouds.get("all"),
            "sunrise": _local_clock(sunrise, offset),
            "sunset": _local_clock(sunset, offset),
            "is_day": is_day,
            "city": payload.get("name"),
            "country": sys_block.get("country"),
        }
    )


def build_weather_record(raw: dict[str, Any]) -> WeatherRecord:
    """Apply the :class:`WeatherRecord` defaults to loosely typed provider values.

    ``temp_min``/``temp_max`` fall back to ``temp`` before the numeric default.
    """
    defaults = {name: info.default for name, info in WeatherRecord.model_fields.items()}
    values: dict[str, Any] = {}

    for name in NUMERIC_FIELDS:
        parsed = _as_float(raw.get(name))
        values[name] = parsed if parsed is not None else defaults[name]

    for name in ("temp_min", "temp_max"):
        if _as_float(raw.get(name)) is None:
            values[name] = values["temp"]

    for name in TEXT_FIELDS:
        text = raw.get(name)
        values[name] = str(text).strip() if text is not None and str(text).strip() else defaults[name]

    is_day = raw.get("is_day")
    values["is_day"] = is_day if isinstance(is_day, bool) else defaults["is_day"]
    return WeatherRecord(**values)


def _local_clock(stamp: int | None, offset_seconds: int) -> str | None:
    if stamp is None:
        return None
    return datetime.fromtimestamp(stamp + offset_seconds, tz=timezone.utc).strftime("%H:%M")


def _as_dict(value: object) -> dict:
    return value if isinstance(value, dict) else {}


def _as_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

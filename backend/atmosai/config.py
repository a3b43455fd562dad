from __future__ import annotations

import os
from dataclasses import dataclass


class MissingConfiguration(RuntimeError):
    """A required upstream API key is not configured."""


@dataclass(frozen=True)
class Settings:
    app_name: str = "AtmosAI Weather Assistant"
    app_version: str = "1.0.0"
    weatherapi_key: str = ""
    openweather_api_key: str = ""
    gemini_api_key: str = ""
    openai_api_key: str = ""
    weatherapi_url: str = "https://api.weatherapi.com/v1/current.json"
    openweather_url: str = "https://api.openweathermap.org/data/2.5/weather"
    open_meteo_geo_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/models"
    gemini_models: tuple[str, ...] = ("gemini-2.5-flash", "gemini-2.0-flash", "gemini-1.5-flash")
    city_extraction_model: str = "gemini-2.0-flash"
    min_reply_chars: int = 20
    openai_tts_url: str = "https://api.openai.com/v1/audio/speech"
    tts_model: str = "gpt-4o-mini-tts"
    tts_voice: str = "alloy"
    request_timeout_seconds: float = 12.0
    log_level: str = "INFO"
    frontend_origins: tuple[str, ...] = ("http://localhost:3000", "http://127.0.0.1:3000")

    @property
    def weather_provider(self) -> str | None:
        if self.weatherapi_key:
            return "weatherapi"
        if self.openweather_api_key:
            return "openweathermap"
        return None


def get_settings() -> Settings:
    origins_raw = os.getenv("FRONTEND_ORIGINS", "").strip()
    models_raw = os.getenv("GEMINI_MODELS", "").strip()
    min_reply_raw = os.getenv("MIN_REPLY_CHARS", "").strip()
    timeout_raw = os.getenv("REQUEST_TIMEOUT_SECONDS", "").strip()

    parsed_origins = tuple(item.strip() for item in origins_raw.split(",") if item.strip())
    parsed_models = tuple(item.strip() for item in models_raw.split(",") if item.strip())

    try:
        min_reply_chars = int(min_reply_raw) if min_reply_raw else 20
    except ValueError:
        min_reply_chars = 20

    try:
        request_timeout_seconds = float(timeout_raw) if timeout_raw else 12.0
    except ValueError:
        request_timeout_seconds = 12.0

    return Settings(
        weatherapi_key=os.getenv("WEATHERAPI_KEY", "").strip(),
        openweather_api_key=os.getenv("OPENWEATHER_API_KEY", "").strip(),
        gemini_api_key=os.getenv("GEMINI_API_KEY", "").strip(),
        openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
        gemini_models=parsed_models or Settings.gemini_models,
        city_extraction_model=os.getenv("CITY_EXTRACTION_MODEL", "").strip() or Settings.city_extraction_model,
        min_reply_chars=max(1, min_reply_chars),
        request_timeout_seconds=max(1.0, request_timeout_seconds),
        log_level=os.getenv("LOG_LEVEL", "").strip().upper() or Settings.log_level,
        frontend_origins=parsed_origins or Settings.frontend_origins,
    )

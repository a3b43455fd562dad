from __future__ import annotations

from dataclasses import dataclass

import structlog

from atmosai.config import Settings
from atmosai.locales import localized, speech_language
from atmosai.schemas import ChatRequest
from atmosai.services.locator import LocationNotFound, resolve_location
from atmosai.services.model_client import ModelClient
from atmosai.services.prompts import compose_prompt
from atmosai.services.weather_client import WeatherClient, WeatherUnavailable


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ChatOutcome:
    status_code: int
    body: dict


async def handle_chat(
    request: ChatRequest,
    *,
    settings: Settings,
    weather_client: WeatherClient,
    model_client: ModelClient,
) -> ChatOutcome:
    lang = request.lang

    if request.coordinates is None and request.location is None:
        return ChatOutcome(200, {"needsLocation": True, "reply": localized("location_needed", lang)})
    if request.message is None:
        return ChatOutcome(200, {"needsMessage": True, "reply": localized("message_needed", lang)})

    if settings.weather_provider is None or not settings.gemini_api_key:
        logger.error(
            "chat_missing_api_keys",
            weather_configured=settings.weather_provider is not None,
            model_configured=bool(settings.gemini_api_key),
        )
        return ChatOutcome(500, {"error": "Missing API keys"})

    try:
        location = await resolve_location(request, weather_client=weather_client, model_client=model_client)
    except LocationNotFound:
        logger.info("chat_location_not_found", location=request.location)
        return ChatOutcome(200, {"needsLocation": True, "reply": localized("location_not_found", lang)})

    try:
        weather = await weather_client.fetch_current(location, language=lang)
    except WeatherUnavailable:
        return ChatOutcome(500, {"error": "Failed to fetch weather"})

    if weather.city == "Unknown" and location.name:
        weather = weather.model_copy(update={"city": location.name})

    prompt = compose_prompt(
        message=request.message,
        location=location.name or weather.city,
        topic=request.theme,
        weather=weather,
        language=lang,
    )

    reply = await model_client.ask(prompt)
    if not reply:
        reply = localized("fallback_reply", lang)

    return ChatOutcome(
        200,
        {
            "reply": reply,
            "weather": weather.model_dump(),
            "city": weather.city,
            "speech_language": speech_language(lang),
        },
    )

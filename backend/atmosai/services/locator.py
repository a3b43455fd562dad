from __future__ import annotations

import httpx
import structlog

from atmosai.locales import localized
from atmosai.schemas import ChatRequest, ResolvedLocation
from atmosai.services.model_client import ModelClient
from atmosai.services.weather_client import WeatherClient


logger = structlog.get_logger(__name__)


class LocationNotFound(LookupError):
    """No coordinates could be derived from the request."""


async def resolve_location(
    request: ChatRequest,
    *,
    weather_client: WeatherClient,
    model_client: ModelClient | None = None,
) -> ResolvedLocation:
    """Turn the request's location inputs into coordinates.

    Explicit coordinates win and skip every upstream call. Otherwise the
    location text is geocoded; if that finds nothing, the city named in the
    user's message (per the extraction model) gets one more geocoding attempt.
    The first geocoding candidate is always accepted.
    """
    coordinates = request.coordinates
    if coordinates is not None:
        latitude, longitude = coordinates
        return ResolvedLocation(
            name=request.location or localized("current_location", request.lang),
            latitude=latitude,
            longitude=longitude,
        )

    if not request.location:
        raise LocationNotFound("No coordinates or location text supplied.")

    resolved = await _geocode(weather_client, request.location, request.lang)
    if resolved is not None:
        return resolved

    if model_client is not None and request.message:
        city = await model_client.extract_city(request.message)
        if city and city.lower() != request.location.lower():
            logger.info("location_extracted_from_message", city=city)
            resolved = await _geocode(weather_client, city, request.lang)
            if resolved is not None:
                return resolved

    raise LocationNotFound(f"Location not found: {request.location}")


async def _geocode(weather_client: WeatherClient, query: str, language: str) -> ResolvedLocation | None:
    try:
        return await weather_client.geocode(query, language=language)
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("geocoding_failed", query=query, error=str(exc))
        return None

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import httpx
import structlog
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles

from atmosai.config import MissingConfiguration, get_settings
from atmosai.locales import normalize_language
from atmosai.logging_config import configure_logging
from atmosai.schemas import ChatRequest, TTSRequest
from atmosai.services.chat_handler import handle_chat
from atmosai.services.model_client import ModelClient
from atmosai.services.speech_client import SpeechClient, TTSUnavailable
from atmosai.services.weather_client import WeatherClient


settings = get_settings()
configure_logging(settings.log_level)
logger = structlog.get_logger(__name__)

weather_client = WeatherClient(settings=settings)
model_client = ModelClient(settings=settings)
speech_client = SpeechClient(settings=settings)

STATIC_DIR = Path(__file__).resolve().parent / "static"

app = FastAPI(title=settings.app_name, version=settings.app_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.frontend_origins),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    await weather_client.close()
    await model_client.close()
    await speech_client.close()


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("request_validation_failed", path=request.url.path, error_count=len(exc.errors()))
    return JSONResponse(status_code=500, content={"error": "Server error"})


@app.get("/api/health")
async def health() -> dict:
    return {
        "status": "ok",
        "service": settings.app_name,
        "timestamp_utc": datetime.now(tz=timezone.utc).isoformat(),
    }


@app.get("/api/geocode")
async def geocode(
    query: str = Query(min_length=2, max_length=80),
    lang: str = Query(default="en", max_length=10),
) -> dict:
    try:
        result = await weather_client.geocode(query, language=normalize_language(lang))
    except httpx.HTTPError as exc:
        raise HTTPException(status_code=502, detail=f"Geocoding provider error: {exc}") from exc
    return {"result": result.model_dump() if result is not None else None}


@app.post("/api/chat")
async def chat(payload: ChatRequest) -> JSONResponse:
    try:
        outcome = await handle_chat(
            payload,
            settings=settings,
            weather_client=weather_client,
            model_client=model_client,
        )
        return JSONResponse(status_code=outcome.status_code, content=outcome.body)
    except Exception:
        logger.exception("chat_request_failed")
        return JSONResponse(status_code=500, content={"error": "Server error"})


@app.post("/api/tts")
async def tts(payload: TTSRequest) -> Response:
    if not settings.openai_api_key:
        logger.error("tts_missing_api_key")
        return JSONResponse(status_code=500, content={"error": "Missing OPENAI_API_KEY"})

    try:
        audio = await speech_client.synthesize(payload.text, language=payload.lang)
    except (TTSUnavailable, MissingConfiguration):
        return JSONResponse(status_code=500, content={"error": "TTS request failed"})
    except Exception:
        logger.exception("tts_request_crashed")
        return JSONResponse(status_code=500, content={"error": "Server error"})

    return Response(content=audio, media_type="audio/mpeg")


app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from atmosai.config import MissingConfiguration, Settings
from atmosai.services.prompts import compose_city_extraction_prompt


logger = structlog.get_logger(__name__)

NO_CITY_TOKEN = "NONE"


@dataclass
class ModelClient:
    """Gemini ``generateContent`` client.

    ``ask`` walks ``settings.gemini_models`` in order and returns the first reply
    that passes :func:`is_usable_reply`; there is no retry or delay between
    candidates. ``extract_city`` always uses ``settings.city_extraction_model``.
    """

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

    async def ask(self, prompt: str) -> str:
        for model in self.settings.gemini_models:
            try:
                text = await self._generate(model=model, prompt=prompt)
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("model_candidate_failed", model=model, error=str(exc))
                continue

            if is_usable_reply(text, min_chars=self.settings.min_reply_chars):
                logger.info("model_candidate_accepted", model=model, reply_chars=len(text.strip()))
                return text.strip()
            logger.warning("model_candidate_rejected", model=model, reply_chars=len(text.strip()))

        logger.error("model_candidates_exhausted", models=list(self.settings.gemini_models))
        return ""

    async def extract_city(self, message: str) -> str | None:
        if not message.strip():
            return None

        try:
            text = await self._generate(
                model=self.settings.city_extraction_model,
                prompt=compose_city_extraction_prompt(message),
                temperature=0.0,
            )
        except (httpx.HTTPError, ValueError, MissingConfiguration) as exc:
            logger.warning("city_extraction_failed", error=str(exc))
            return None

        lines = text.strip().splitlines()
        city = lines[0].strip().strip(".\"'`") if lines else ""
        if not city or city.upper() == NO_CITY_TOKEN:
            return None
        return city

    async def _generate(self, *, model: str, prompt: str, temperature: float | None = None) -> str:
        if not self.settings.gemini_api_key:
            raise MissingConfiguration("Missing GEMINI_API_KEY")

        body: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if temperature is not None:
            body["generationConfig"] = {"temperature": temperature}

        response = await self._client.post(
            f"{self.settings.gemini_base_url}/{model}:generateContent",
            headers={"x-goog-api-key": self.settings.gemini_api_key},
            json=body,
        )
        response.raise_for_status()
        return extract_reply_text(response.json())


def is_usable_reply(text: str | None, *, min_chars: int) -> bool:
    if not text:
        return False
    return len(text.strip()) >= min_chars


def extract_reply_text(payload: Any) -> str:
    """Join the text parts of the first candidate; empty string when absent."""
    if not isinstance(payload, dict):
        raise ValueError("Gemini payload is not an object.")

    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return ""

    content = candidates[0].get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str))

from __future__ import annotations

from dataclasses import dataclass, field

import httpx
import structlog

from atmosai.config import MissingConfiguration, Settings


logger = structlog.get_logger(__name__)


class TTSUnavailable(RuntimeError):
    """The speech provider failed to return audio."""


@dataclass
class SpeechClient:
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

    async def synthesize(self, text: str, language: str = "en") -> bytes:
        """Return MP3 audio for ``text``.

        The same voice serves every language; the model infers pronunciation
        from the input text.
        """
        if not self.settings.openai_api_key:
            raise MissingConfiguration("Missing OPENAI_API_KEY")
        if not text.strip():
            raise TTSUnavailable("No text to synthesize")

        try:
            response = await self._client.post(
                self.settings.openai_tts_url,
                headers={"Authorization": f"Bearer {self.settings.openai_api_key}"},
                json={
                    "model": self.settings.tts_model,
                    "voice": self.settings.tts_voice,
                    "input": text,
                    "response_format": "mp3",
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "tts_request_failed",
                status_code=exc.response.status_code,
                body=exc.response.text[:500],
                language=language,
            )
            raise TTSUnavailable("TTS request failed") from exc
        except httpx.RequestError as exc:
            logger.warning("tts_request_failed", error=str(exc), language=language)
            raise TTSUnavailable("TTS request failed") from exc

        logger.info("tts_synthesized", language=language, audio_bytes=len(response.content))
        return response.content

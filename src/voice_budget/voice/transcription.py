from openai import APIError, OpenAI

from voice_budget.core import settings
from voice_budget.errors import EmptyAudio, TranscriptionFailed
from voice_budget.logger import get_logger
from voice_budget.voice.client import build_openai_client

logger = get_logger(__name__)

DEFAULT_AUDIO_TYPE = "audio/webm"
DEFAULT_AUDIO_NAME = "recording.webm"


class Transcriber:
    def __init__(self, client: OpenAI | None = None, model: str | None = None):
        self._client = client
        self.model = model or settings.transcription_model()

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = build_openai_client()
        return self._client

    def transcribe(
        self,
        audio: bytes,
        content_type: str | None = None,
        filename: str | None = None,
    ) -> str:
        if not audio:
            raise EmptyAudio("Audio payload is empty")

        content_type = content_type or DEFAULT_AUDIO_TYPE
        filename = filename or DEFAULT_AUDIO_NAME
        logger.debug("[TRANSCRIBE] Sending %d bytes (%s).", len(audio), content_type)
        try:
            response = self.client.audio.transcriptions.create(
                model=self.model,
                file=(filename, audio, content_type),
            )
        except APIError as exc:
            logger.error("[TRANSCRIBE] Request failed: %s", exc)
            raise TranscriptionFailed(f"Transcription request failed: {exc}") from exc

        text = response if isinstance(response, str) else getattr(response, "text", None)
        if not isinstance(text, str) or not text.strip():
            logger.warning("[TRANSCRIBE] Empty transcript returned.")
            raise TranscriptionFailed("Transcription returned no text")

        text = text.strip()
        logger.info("[TRANSCRIBE] Transcribed %d bytes into %d characters.", len(audio), len(text))
        return text

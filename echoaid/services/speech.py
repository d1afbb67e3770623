"""Google Cloud Speech services for EchoAid.

Provides async STT (Speech-to-Text v2) and TTS (Text-to-Speech v1)
wrappers around the official GCP client libraries.  Call recordings are
fetched by the voice processing layer and handed over as raw bytes;
nothing here touches the document store.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

import structlog
from google.cloud.speech_v2 import SpeechAsyncClient
from google.cloud.speech_v2.types import cloud_speech
from google.cloud.texttospeech_v1 import TextToSpeechAsyncClient
from google.cloud.texttospeech_v1.types import (
    AudioConfig,
    AudioEncoding,
    SsmlVoiceGender,
    SynthesisInput,
    SynthesizeSpeechRequest,
    VoiceSelectionParams,
)

from config.languages import LANGUAGES, resolve_language

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ASRResult:
    """Result of a speech-to-text recognition request."""

    text: str
    confidence: float
    language: str
    processing_time_ms: float
    provider: str = field(default="google")


def default_voice(language: str) -> str:
    """Telephony voice for *language*, falling back to the Hindi voice."""
    return LANGUAGES[resolve_language(language)].default_voice


# ---------------------------------------------------------------------------
# SpeechToTextService
# ---------------------------------------------------------------------------


class SpeechToTextService:
    """Async wrapper around Google Cloud Speech-to-Text v2.

    Uses the ``asia-south1`` regional endpoint by default for lowest
    latency when serving Indian callers.
    """

    def __init__(self, project_id: str, region: str = "asia-south1") -> None:
        self._project_id = project_id
        self._region = region
        self._client: SpeechAsyncClient | None = None

    async def _get_client(self) -> SpeechAsyncClient:
        if self._client is None:
            self._client = SpeechAsyncClient(
                client_options={"api_endpoint": f"{self._region}-speech.googleapis.com"},
            )
        return self._client

    @property
    def _recognizer_name(self) -> str:
        """Full resource name for the default recognizer."""
        return f"projects/{self._project_id}/locations/{self._region}/recognizers/_"

    async def transcribe(self, audio_data: bytes, language_code: str) -> ASRResult:
        """Transcribe a complete recording and return the best alternative.

        The container format is auto-detected, since carriers deliver
        recordings as WAV or MP3 depending on the account.
        """
        start = time.perf_counter()
        client = await self._get_client()
        bcp47 = LANGUAGES[resolve_language(language_code)].gcp_stt_code

        config = cloud_speech.RecognitionConfig(
            auto_decoding_config=cloud_speech.AutoDetectDecodingConfig(),
            language_codes=[bcp47],
            model="long",
        )
        request = cloud_speech.RecognizeRequest(
            recognizer=self._recognizer_name,
            config=config,
            content=audio_data,
        )

        logger.debug("speech.stt_request", language=bcp47, audio_bytes=len(audio_data))
        response = await client.recognize(request=request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        if response.results and response.results[0].alternatives:
            best = response.results[0].alternatives[0]
            text, confidence = best.transcript.strip(), best.confidence
        else:
            text, confidence = "", 0.0

        result = ASRResult(
            text=text,
            confidence=confidence,
            language=bcp47,
            processing_time_ms=round(elapsed_ms, 2),
        )
        logger.info(
            "speech.stt_result",
            text_length=len(result.text),
            confidence=result.confidence,
            language=result.language,
            processing_time_ms=result.processing_time_ms,
        )
        return result

    async def close(self) -> None:
        """Release underlying gRPC resources."""
        if self._client is not None:
            transport = self._client.transport
            if hasattr(transport, "close"):
                await transport.close()  # type: ignore[misc]
            self._client = None


# ---------------------------------------------------------------------------
# TextToSpeechService
# ---------------------------------------------------------------------------


class TextToSpeechService:
    """Async wrapper around Google Cloud Text-to-Speech v1.

    Produces MP3 audio tuned for telephony playback.
    """

    def __init__(self, project_id: str) -> None:
        self._project_id = project_id
        self._client: TextToSpeechAsyncClient | None = None

    async def _get_client(self) -> TextToSpeechAsyncClient:
        if self._client is None:
            self._client = TextToSpeechAsyncClient()
        return self._client

    async def synthesize(
        self,
        text: str,
        language_code: str,
        voice: str | None = None,
        speaking_rate: float = 0.9,
    ) -> bytes:
        """Synthesize *text* to MP3 audio bytes.

        Parameters
        ----------
        text:
            Plain text to speak.
        language_code:
            Internal language code (e.g. ``"hi"``, ``"ta"``).
        voice:
            Explicit GCP voice name; defaults to the language's voice.
        speaking_rate:
            Speed multiplier.  Slightly slower than normal by default,
            which is easier to follow over a phone line.
        """
        start = time.perf_counter()
        client = await self._get_client()

        lang = LANGUAGES[resolve_language(language_code)]
        voice_name = voice or lang.default_voice

        request = SynthesizeSpeechRequest(
            input=SynthesisInput(text=text),
            voice=VoiceSelectionParams(
                language_code=lang.gcp_tts_code,
                name=voice_name,
                ssml_gender=SsmlVoiceGender.NEUTRAL,
            ),
            audio_config=AudioConfig(
                audio_encoding=AudioEncoding.MP3,
                speaking_rate=speaking_rate,
                pitch=0.0,
                volume_gain_db=0.0,
                effects_profile_id=["telephony-class-application"],
            ),
        )

        response = await client.synthesize_speech(request=request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "speech.tts_result",
            language=lang.gcp_tts_code,
            voice=voice_name,
            text_length=len(text),
            audio_bytes=len(response.audio_content),
            processing_time_ms=round(elapsed_ms, 2),
        )
        return response.audio_content

    async def close(self) -> None:
        """Release underlying gRPC resources."""
        if self._client is not None:
            transport = self._client.transport
            if hasattr(transport, "close"):
                await transport.close()  # type: ignore[misc]
            self._client = None

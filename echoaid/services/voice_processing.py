"""Speech and NLU boundary for a caller turn.

Chains recording download, speech-to-text and intent classification,
and records every turn in the ``voiceInteractions`` table.  Responses
synthesized for playback are stored in ``voiceAudio`` and served back to
the carrier by id.

Backend failures never escape: they become a localized "please say that
again" fallback for the caller.
"""

from __future__ import annotations

import base64
import time
from typing import TYPE_CHECKING

import httpx
import structlog

from config.languages import resolve_language
from echoaid.exceptions import VoiceProcessingError
from echoaid.models.interaction import (
    AIResponse,
    IntentResult,
    SynthesisResult,
    SynthesizedAudio,
    UserInput,
    VoiceInteraction,
    VoiceProcessingResult,
)
from echoaid.services.speech import default_voice
from echoaid.services.store import AUDIO, INTERACTIONS

if TYPE_CHECKING:
    from echoaid.services.intent_classifier import IntentClassifier
    from echoaid.services.localization import MessageCatalog
    from echoaid.services.sessions import SessionRepository
    from echoaid.services.speech import SpeechToTextService, TextToSpeechService
    from echoaid.services.store import DocumentStore

logger = structlog.get_logger(__name__)

AUDIO_URL_PREFIX = "/api/v1/voice/audio/"
# Used when the recognizer returns a transcript without a score.
DEFAULT_CONFIDENCE = 0.8


class VoiceProcessingService:
    """Runs STT, intent classification and TTS for the call flow."""

    def __init__(
        self,
        store: DocumentStore,
        sessions: SessionRepository,
        messages: MessageCatalog,
        classifier: IntentClassifier,
        stt: SpeechToTextService | None = None,
        tts: TextToSpeechService | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._store = store
        self._sessions = sessions
        self._messages = messages
        self._classifier = classifier
        self._stt = stt
        self._tts = tts
        self._http = http_client or httpx.AsyncClient(timeout=30.0, follow_redirects=True)

    # -- speech in ----------------------------------------------------------

    async def _fetch_audio(self, audio_url: str) -> bytes:
        try:
            response = await self._http.get(audio_url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise VoiceProcessingError(f"Could not download recording: {exc}") from exc
        return response.content

    async def process_voice_input(
        self,
        audio_url: str,
        session_id: str,
        language: str | None = None,
    ) -> VoiceProcessingResult:
        """Transcribe the recording at *audio_url* and classify it."""
        lang = resolve_language(language)
        start = time.perf_counter()
        try:
            if self._stt is None:
                raise VoiceProcessingError("Speech-to-text is not configured")
            audio = await self._fetch_audio(audio_url)
            try:
                asr = await self._stt.transcribe(audio, lang)
            except Exception as exc:
                raise VoiceProcessingError(f"Transcription failed: {exc}") from exc
            if not asr.text:
                raise VoiceProcessingError("Empty transcript")
        except VoiceProcessingError:
            logger.warning(
                "voice.process_failed",
                session_id=session_id,
                audio_url=audio_url,
                exc_info=True,
            )
            return VoiceProcessingResult(
                success=False,
                language=lang,
                message=self._messages.get("voice.not_understood", lang),
            )

        confidence = asr.confidence or DEFAULT_CONFIDENCE
        intent, interaction_id = await self._classify_and_record(
            asr.text, session_id, lang, confidence, audio_url=audio_url
        )
        logger.info(
            "voice.processed",
            session_id=session_id,
            language=lang,
            intent=intent.intent,
            processing_time_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return VoiceProcessingResult(
            success=True,
            transcript=asr.text,
            language=lang,
            confidence=confidence,
            intent=intent,
            interaction_id=interaction_id,
            message=intent.response_text,
        )

    async def recognize_intent(
        self,
        text: str,
        session_id: str,
        language: str | None = None,
        confidence: float = DEFAULT_CONFIDENCE,
    ) -> IntentResult:
        """Classify already-transcribed *text* and record the turn."""
        intent, _ = await self._classify_and_record(text, session_id, resolve_language(language), confidence)
        return intent

    async def _classify_and_record(
        self,
        text: str,
        session_id: str,
        language: str,
        confidence: float,
        *,
        audio_url: str | None = None,
    ) -> tuple[IntentResult, str | None]:
        session = await self._sessions.get(session_id)
        intent = await self._classifier.classify(text, language, session)

        interaction = VoiceInteraction(
            session_id=session_id,
            user_input=UserInput(
                audio_url=audio_url,
                transcript=text,
                language=language,
                confidence=confidence,
            ),
            ai_response=AIResponse(
                intent=intent.intent,
                entities=intent.entities,
                response_text=intent.response_text or "",
                actions=intent.actions,
            ),
        )
        await self._store.insert(INTERACTIONS, interaction.interaction_id, interaction.model_dump(mode="json"))
        if session is not None:
            await self._sessions.patch(session_id)
        return intent, interaction.interaction_id

    # -- speech out ---------------------------------------------------------

    async def generate_voice_response(
        self,
        text: str,
        language: str | None = None,
        voice: str | None = None,
    ) -> SynthesisResult:
        """Synthesize *text* and store it for playback by the carrier."""
        lang = resolve_language(language)
        voice_name = voice or default_voice(lang)
        try:
            if self._tts is None:
                raise VoiceProcessingError("Text-to-speech is not configured")
            try:
                content = await self._tts.synthesize(text, lang, voice_name)
            except Exception as exc:
                raise VoiceProcessingError(f"Synthesis failed: {exc}") from exc
        except VoiceProcessingError:
            logger.warning("voice.synthesis_failed", language=lang, voice=voice_name, exc_info=True)
            return SynthesisResult(
                success=False,
                language=lang,
                voice=voice_name,
                message=text,
            )

        audio = SynthesizedAudio(
            language=lang,
            voice=voice_name,
            text=text,
            content_b64=base64.b64encode(content).decode("ascii"),
        )
        await self._store.insert(AUDIO, audio.audio_id, audio.model_dump(mode="json"))
        logger.info("voice.synthesized", audio_id=audio.audio_id, language=lang, audio_bytes=len(content))
        return SynthesisResult(
            success=True,
            language=lang,
            audio_id=audio.audio_id,
            audio_url=f"{AUDIO_URL_PREFIX}{audio.audio_id}",
            voice=voice_name,
        )

    async def get_audio(self, audio_id: str) -> tuple[bytes, str] | None:
        """Return ``(content, mime_type)`` for a stored clip."""
        doc = await self._store.get(AUDIO, audio_id)
        if doc is None:
            return None
        audio = SynthesizedAudio.model_validate(doc)
        return base64.b64decode(audio.content_b64), audio.mime_type

    async def close(self) -> None:
        await self._http.aclose()
        if self._stt is not None:
            await self._stt.close()

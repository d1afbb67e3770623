"""Speech and NLU endpoints for EchoAid API v1.

``/voice/process`` takes a recording URL from the carrier and returns
the transcript plus classified intent; ``/voice/intent`` does the same
for text already transcribed by the carrier.  ``/voice/synthesize``
renders a reply and returns a URL under ``/voice/audio/`` that the
carrier can play back.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, ConfigDict, Field

from echoaid.models.interaction import IntentResult, SynthesisResult, VoiceProcessingResult
from echoaid.services.voice_processing import DEFAULT_CONFIDENCE, VoiceProcessingService

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/voice", tags=["voice"])


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ProcessVoiceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    audio_url: str = Field(..., alias="audioUrl", min_length=1)
    session_id: str = Field(..., alias="sessionId")
    language: str | None = None


class SynthesizeRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)
    language: str | None = None
    voice: str | None = None


class IntentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., min_length=1, max_length=5000)
    session_id: str = Field(..., alias="sessionId")
    language: str | None = None
    confidence: float = Field(default=DEFAULT_CONFIDENCE, ge=0.0, le=1.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_voice(request: Request) -> VoiceProcessingService:
    """Retrieve the voice processing service from app state, or raise 503."""
    voice = getattr(request.app.state, "voice", None)
    if voice is None:
        raise HTTPException(status_code=503, detail="Voice processing not initialised.")
    return voice


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/process", response_model=VoiceProcessingResult)
async def process_voice(body: ProcessVoiceRequest, request: Request) -> VoiceProcessingResult:
    voice = _get_voice(request)
    return await voice.process_voice_input(body.audio_url, body.session_id, body.language)


@router.post("/intent", response_model=IntentResult)
async def recognize_intent(body: IntentRequest, request: Request) -> IntentResult:
    """Classify already-transcribed caller speech."""
    voice = _get_voice(request)
    return await voice.recognize_intent(body.text, body.session_id, body.language, body.confidence)


@router.post("/synthesize", response_model=SynthesisResult)
async def synthesize(body: SynthesizeRequest, request: Request) -> SynthesisResult:
    voice = _get_voice(request)
    return await voice.generate_voice_response(body.text, body.language, body.voice)


@router.get("/audio/{audio_id}")
async def get_audio(audio_id: str, request: Request) -> Response:
    """Serve a previously synthesized clip."""
    voice = _get_voice(request)
    audio = await voice.get_audio(audio_id)
    if audio is None:
        raise HTTPException(status_code=404, detail=f"Audio '{audio_id}' not found.")
    content, mime_type = audio
    return Response(content=content, media_type=mime_type)

"""Structured NLU output and the per-turn interaction record."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class Entity(BaseModel):
    """A typed span the classifier pulled out of the transcript."""

    type: str
    value: str
    confidence: float = 1.0


class IntentResult(BaseModel):
    """Classifier output, accepted in either snake_case or camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    intent: str = "help_general"
    entities: list[Entity] = Field(default_factory=list)
    emotional_state: str = Field(default="unknown", alias="emotionalState")
    actions: list[str] = Field(default_factory=list)
    response_text: str | None = Field(default=None, alias="responseText")

    @classmethod
    def fallback(cls) -> IntentResult:
        return cls(
            intent="help_general",
            entities=[],
            emotional_state="unknown",
            actions=["provide_general_help"],
        )


class UserInput(BaseModel):
    audio_url: str | None = None
    transcript: str
    language: str
    confidence: float = 0.0


class AIResponse(BaseModel):
    intent: str
    entities: list[Entity] = Field(default_factory=list)
    response_text: str = ""
    audio_url: str | None = None
    actions: list[str] = Field(default_factory=list)


class VoiceInteraction(BaseModel):
    interaction_id: str = Field(default_factory=lambda: f"int_{uuid4().hex[:12]}")
    session_id: str
    user_input: UserInput
    ai_response: AIResponse
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class SynthesizedAudio(BaseModel):
    audio_id: str = Field(default_factory=lambda: f"audio_{uuid4().hex}")
    language: str
    voice: str
    text: str
    content_b64: str
    mime_type: str = "audio/mpeg"
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class VoiceProcessingResult(BaseModel):
    """Outcome of one caller turn: transcript plus classified intent."""

    success: bool
    transcript: str = ""
    language: str
    confidence: float = 0.0
    intent: IntentResult = Field(default_factory=IntentResult.fallback)
    interaction_id: str | None = None
    message: str | None = None


class SynthesisResult(BaseModel):
    success: bool
    language: str
    audio_id: str | None = None
    audio_url: str | None = None
    voice: str | None = None
    message: str | None = None

"""Vertex AI Gemini intent classifier.

Turns a caller's transcript into a structured :class:`IntentResult`
(intent, entities, emotional state, suggested actions).  The model is
asked for JSON only; anything that is not a usable JSON object, and any
backend failure, yields the general-help fallback instead of an error.
"""

from __future__ import annotations

import json
import time
from typing import TYPE_CHECKING, Final

import structlog
import vertexai
from pydantic import ValidationError
from vertexai.generative_models import (
    Content,
    GenerationConfig,
    GenerativeModel,
    Part,
)

from echoaid.models.interaction import IntentResult

if TYPE_CHECKING:
    from echoaid.models.session import Session

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

ECHOAID_SYSTEM_PROMPT: Final[str] = """\
You are EchoAid, an AI assistant helping digitally excluded people in \
India reach social welfare services over a simple phone call. Many \
callers are homeless, migrant workers, transgender, undocumented or \
surviving violence. Be empathetic and culturally sensitive.

Analyze the caller's words and identify:
1. Primary intent: one of employment, shelter, food, healthcare, \
legal_aid, emergency, identity_verification, location_help.
2. Entities: location, urgency level, user category, specific needs. \
Each entity has "type", "value" and "confidence" (0-1).
3. Emotional state: distressed, calm, urgent or confused.
4. Required actions: short snake_case tokens for what should happen next.

Respond ONLY with a JSON object with the keys "intent", "entities", \
"emotionalState", "actions" and optionally "responseText" (a short, \
warm reply in the caller's language).\
"""

_USER_PROMPT: Final[str] = """\
User context: {profile}
Location: {location}
Language: {language}

Caller said: {text}

JSON response:\
"""


class IntentClassifier:
    """Async interface to Gemini for caller intent extraction."""

    def __init__(
        self,
        project_id: str,
        region: str = "asia-south1",
        model_name: str = "gemini-2.0-flash",
    ) -> None:
        self._project_id = project_id
        self._region = region
        self._model_name = model_name
        self._model: GenerativeModel | None = None
        self._initialized = False

    # -- lifecycle ----------------------------------------------------------

    def _initialize(self) -> None:
        """Lazily initialize the Vertex AI SDK and model handle."""
        if self._initialized:
            return
        vertexai.init(project=self._project_id, location=self._region)
        self._model = GenerativeModel(
            model_name=self._model_name,
            system_instruction=[Part.from_text(ECHOAID_SYSTEM_PROMPT)],
        )
        self._initialized = True
        logger.info(
            "intent.classifier_initialized",
            project=self._project_id,
            region=self._region,
            model=self._model_name,
        )

    def _get_model(self) -> GenerativeModel:
        self._initialize()
        assert self._model is not None  # noqa: S101
        return self._model

    # -- helpers ------------------------------------------------------------

    @staticmethod
    def build_prompt(text: str, language: str, session: Session | None) -> str:
        if session is not None and session.user_profile is not None:
            profile = session.user_profile.model_dump_json(exclude_none=True)
        else:
            profile = "New user"
        location = session.location.model_dump_json() if session and session.location else "Unknown"
        return _USER_PROMPT.format(profile=profile, location=location, language=language, text=text)

    @staticmethod
    def parse(raw_text: str) -> IntentResult | None:
        """Parse the model's JSON; ``None`` when it is unusable."""
        try:
            parsed = json.loads(raw_text)
        except json.JSONDecodeError:
            return None
        if not isinstance(parsed, dict) or not parsed.get("intent"):
            return None
        try:
            return IntentResult.model_validate(parsed)
        except ValidationError:
            return None

    # -- public API ---------------------------------------------------------

    async def classify(
        self,
        text: str,
        language: str = "hi",
        session: Session | None = None,
    ) -> IntentResult:
        """Classify *text*; returns the general-help fallback on any failure."""
        start = time.perf_counter()
        try:
            model = self._get_model()
            generation_config = GenerationConfig(
                temperature=0.3,
                top_p=0.8,
                max_output_tokens=500,
                response_mime_type="application/json",
            )
            prompt = self.build_prompt(text, language, session)
            response = await model.generate_content_async(
                contents=[Content(role="user", parts=[Part.from_text(prompt)])],
                generation_config=generation_config,
            )
            raw_text = (response.text or "").strip()
        except Exception:
            logger.error("intent.classification_failed", exc_info=True)
            return IntentResult.fallback()

        result = self.parse(raw_text)
        if result is None:
            logger.warning("intent.parse_failed", raw=raw_text[:200])
            return IntentResult.fallback()

        logger.info(
            "intent.classified",
            text_length=len(text),
            intent=result.intent,
            entities=len(result.entities),
            emotional_state=result.emotional_state,
            processing_time_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return result

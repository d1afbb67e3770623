"""Identity verification without Aadhaar.

Four methods are accepted, from most inclusive to most formal:

* **self_declaration** -- the caller describes themselves; always the
  ``basic`` tier when complete.
* **community_referral** -- a community worker vouches for the caller;
  ``verified`` when the worker belongs to a known organisation.
* **voice_consent** -- a spoken consent statement; tier governed by
  ``voice_consent_trust_policy``.
* **document_alternative** -- a non-Aadhaar document such as a ration
  card; ``verified`` when the caller holds a physical copy.

Each successful method produces a profile fragment that is shallow-merged
into the session's user profile.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Final, Literal
from uuid import uuid4

import structlog

from echoaid.models.enums import TrustLevel, VerificationMethod
from echoaid.models.session import UserProfile
from echoaid.models.verification import (
    PAYLOAD_TYPES,
    CommunityReferral,
    DocumentAlternative,
    SelfDeclaration,
    VerificationResult,
    VerificationStatus,
    VoiceConsent,
)

if TYPE_CHECKING:
    from echoaid.services.localization import MessageCatalog
    from echoaid.services.sessions import SessionRepository

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

# First match in declaration order wins.
SITUATION_CATEGORIES: Final[tuple[tuple[tuple[str, ...], str], ...]] = (
    (("homeless",), "homeless"),
    (("migrant",), "migrant"),
    (("unemployed",), "unemployed"),
    (("transgender",), "trans"),
    (("undocumented",), "undocumented"),
    (("refugee",), "refugee"),
    (("domestic_violence", "domestic violence"), "domestic_violence_survivor"),
)

KNOWN_ORGANIZATIONS: Final[tuple[str, ...]] = (
    "Aajeevika",
    "SEWA",
    "Goonj",
    "Akshaya Patra",
    "Smile Foundation",
    "CRY",
    "Teach for India",
    "Pratham",
    "Helpage India",
)

CONSENT_KEYWORDS: Final[tuple[str, ...]] = ("agree", "consent", "understand", "yes", "allow")
REFUSAL_KEYWORDS: Final[tuple[str, ...]] = ("no", "don't")

ACCEPTABLE_DOCUMENTS: Final[frozenset[str]] = frozenset(
    {
        "ration_card",
        "voter_id",
        "bank_passbook",
        "school_id",
        "employment_card",
        "pension_card",
        "disability_certificate",
    }
)

SELF_DECLARATION_REQUIRED: Final[tuple[str, ...]] = ("name", "situation", "needs_description")
# Missing fields are reported by the names the caller sent.
_SELF_DECLARATION_WIRE_NAMES: Final[dict[str, str]] = {
    name: SelfDeclaration.model_fields[name].alias or name for name in SELF_DECLARATION_REQUIRED
}
FALLBACK_METHODS: Final[list[str]] = ["self_declaration", "community_referral"]

_ID_PREFIXES: Final[dict[VerificationMethod, str]] = {
    VerificationMethod.SELF_DECLARATION: "self",
    VerificationMethod.COMMUNITY_REFERRAL: "comm",
    VerificationMethod.VOICE_CONSENT: "voice",
    VerificationMethod.DOCUMENT_ALTERNATIVE: "doc",
}


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def categorize_situation(situation: str) -> str:
    text = situation.lower()
    for keywords, category in SITUATION_CATEGORIES:
        if any(keyword in text for keyword in keywords):
            return category
    return "general"


def is_known_organization(organization: str | None) -> bool:
    if not organization:
        return False
    name = organization.lower()
    return any(org.lower() in name for org in KNOWN_ORGANIZATIONS)


def analyze_consent(text: str) -> tuple[bool, list[str]]:
    """Return ``(is_valid, concerns)`` for a consent transcript.

    Both checks are plain substring tests, so "no" inside "know" counts
    as a refusal.
    """
    lowered = text.lower()
    has_consent = any(keyword in lowered for keyword in CONSENT_KEYWORDS)
    concerns: list[str] = []
    if any(keyword in lowered for keyword in REFUSAL_KEYWORDS):
        concerns.append("Possible refusal detected")
    return has_consent and not concerns, concerns


def missing_self_declaration_fields(data: SelfDeclaration) -> list[str]:
    missing = [
        _SELF_DECLARATION_WIRE_NAMES[name]
        for name in SELF_DECLARATION_REQUIRED
        if not str(getattr(data, name)).strip()
    ]
    if not missing and not data.consent_to_help:
        # Consent is asked for together with the core details.
        return list(_SELF_DECLARATION_WIRE_NAMES.values())
    return missing


def new_verification_id(method: VerificationMethod) -> str:
    millis = int(datetime.now(UTC).timestamp() * 1000)
    return f"{_ID_PREFIXES[method]}_{millis}_{uuid4().hex[:9]}"


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class VerificationService:
    """Runs a verification method and records the outcome on the session."""

    __slots__ = ("_messages", "_never_downgrade", "_sessions", "_voice_consent_policy")

    def __init__(
        self,
        sessions: SessionRepository,
        messages: MessageCatalog,
        *,
        voice_consent_policy: Literal["fixed", "validity"] = "fixed",
        never_downgrade_trust: bool = False,
    ) -> None:
        self._sessions = sessions
        self._messages = messages
        self._voice_consent_policy = voice_consent_policy
        self._never_downgrade = never_downgrade_trust

    async def initiate(
        self,
        session_id: str,
        method: str,
        payload: dict[str, Any],
    ) -> VerificationResult:
        """Validate *payload* for *method* and merge the result into the session.

        Never raises: an unknown method, malformed payload or missing
        session yields a failure pointing at the inclusive methods.
        """
        language: str | None = None
        try:
            session = await self._sessions.require(session_id)
            language = session.language
            kind = VerificationMethod(method)
            data = PAYLOAD_TYPES[kind].model_validate(payload)

            handlers = {
                VerificationMethod.SELF_DECLARATION: self._self_declaration,
                VerificationMethod.COMMUNITY_REFERRAL: self._community_referral,
                VerificationMethod.VOICE_CONSENT: self._voice_consent,
                VerificationMethod.DOCUMENT_ALTERNATIVE: self._document_alternative,
            }
            result: VerificationResult = handlers[kind](data, language)

            if result.verification_id is not None:
                await self._merge_profile(session_id, session.user_profile, result)

            logger.info(
                "verification.completed",
                session_id=session_id,
                method=kind.value,
                success=result.success,
                trust_level=result.trust_level.value,
            )
            return result
        except Exception:
            logger.warning("verification.failed", session_id=session_id, method=method, exc_info=True)
            return VerificationResult(
                success=False,
                message=self._messages.get("verification.failed", language),
                alternative_methods=list(FALLBACK_METHODS),
            )

    async def get_status(self, session_id: str) -> VerificationStatus:
        session = await self._sessions.get(session_id)
        profile = session.user_profile if session else None
        if profile is None:
            return VerificationStatus(verified=False, method=None, trust_level=TrustLevel.NONE)
        return VerificationStatus(
            verified=profile.verification_method is not None,
            method=profile.verification_method,
            trust_level=profile.trust_level or TrustLevel.NONE,
            verified_at=profile.verified_at,
        )

    # -- merge --------------------------------------------------------------

    async def _merge_profile(
        self,
        session_id: str,
        existing: UserProfile | None,
        result: VerificationResult,
    ) -> None:
        current = existing.model_dump(exclude_none=True) if existing else {}
        update = dict(result.profile_update)

        if self._never_downgrade and existing is not None and existing.trust_level is not None:
            incoming = TrustLevel(update.get("trust_level", TrustLevel.NONE))
            if incoming.rank < existing.trust_level.rank:
                logger.info(
                    "verification.downgrade_blocked",
                    session_id=session_id,
                    kept=existing.trust_level.value,
                    offered=incoming.value,
                )
                update.pop("trust_level", None)
                update.pop("verification_method", None)

        merged = UserProfile.model_validate(
            {
                **current,
                **update,
                "verified_at": datetime.now(UTC),
                "verification_id": result.verification_id,
            }
        )
        await self._sessions.patch(session_id, user_profile=merged)

    # -- methods --------------------------------------------------------------

    def _self_declaration(self, data: SelfDeclaration, language: str | None) -> VerificationResult:
        missing = missing_self_declaration_fields(data)
        if missing:
            return VerificationResult(
                success=False,
                method=VerificationMethod.SELF_DECLARATION,
                message=self._messages.get("verification.self_declaration.incomplete", language),
                required_fields=missing,
            )

        profile: dict[str, Any] = {
            "name": data.name,
            "category": categorize_situation(data.situation),
            "verification_method": VerificationMethod.SELF_DECLARATION,
            "trust_level": TrustLevel.BASIC,
        }
        if data.age is not None:
            profile["age"] = data.age
        return VerificationResult(
            success=True,
            verification_id=new_verification_id(VerificationMethod.SELF_DECLARATION),
            method=VerificationMethod.SELF_DECLARATION,
            trust_level=TrustLevel.BASIC,
            message=self._messages.get("verification.self_declaration.ok", language),
            profile_update=profile,
        )

    def _community_referral(self, data: CommunityReferral, language: str | None) -> VerificationResult:
        trust = TrustLevel.VERIFIED if is_known_organization(data.referrer_organization) else TrustLevel.BASIC
        return VerificationResult(
            success=True,
            verification_id=new_verification_id(VerificationMethod.COMMUNITY_REFERRAL),
            method=VerificationMethod.COMMUNITY_REFERRAL,
            trust_level=trust,
            message=self._messages.get("verification.community_referral.ok", language),
            profile_update={
                "name": data.user_details.name,
                "category": categorize_situation(data.user_details.situation),
                "verification_method": VerificationMethod.COMMUNITY_REFERRAL,
                "community_referral": data.referrer_name,
                "trust_level": trust,
            },
        )

    def _voice_consent(self, data: VoiceConsent, language: str | None) -> VerificationResult:
        is_valid, concerns = analyze_consent(data.consent_text)
        if self._voice_consent_policy == "validity":
            trust = TrustLevel.VERIFIED if is_valid else TrustLevel.NONE
        else:
            trust = TrustLevel.VERIFIED

        key = "verification.voice_consent.ok" if is_valid else "verification.voice_consent.unclear"
        return VerificationResult(
            success=is_valid,
            verification_id=new_verification_id(VerificationMethod.VOICE_CONSENT),
            method=VerificationMethod.VOICE_CONSENT,
            trust_level=trust,
            message=self._messages.get(key, language),
            profile_update=(
                {"verification_method": VerificationMethod.VOICE_CONSENT, "trust_level": trust}
                if is_valid
                else {}
            ),
            record={
                "type": data.consent_type,
                "timestamp": data.timestamp.isoformat(),
                "audio_url": data.audio_url,
                "is_valid": is_valid,
                "concerns": concerns,
            },
        )

    def _document_alternative(self, data: DocumentAlternative, language: str | None) -> VerificationResult:
        verification_id = new_verification_id(VerificationMethod.DOCUMENT_ALTERNATIVE)
        if data.document_type not in ACCEPTABLE_DOCUMENTS:
            return VerificationResult(
                success=False,
                verification_id=verification_id,
                method=VerificationMethod.DOCUMENT_ALTERNATIVE,
                trust_level=TrustLevel.NONE,
                message=self._messages.get("verification.document.unacceptable", language),
                alternative_methods=["self_declaration"],
                record={"type": data.document_type, "has_physical": data.has_physical_document},
            )

        trust = TrustLevel.VERIFIED if data.has_physical_document else TrustLevel.BASIC
        key = "verification.document.physical" if data.has_physical_document else "verification.document.details_only"
        return VerificationResult(
            success=True,
            verification_id=verification_id,
            method=VerificationMethod.DOCUMENT_ALTERNATIVE,
            trust_level=trust,
            message=self._messages.get(key, language),
            profile_update={
                "verification_method": VerificationMethod.DOCUMENT_ALTERNATIVE,
                "trust_level": trust,
            },
            record={
                "type": data.document_type,
                "has_physical": data.has_physical_document,
                "trust_level": trust.value,
            },
        )

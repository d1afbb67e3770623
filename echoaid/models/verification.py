"""Identity assertion payloads and the verification result.

EchoAid never asks for Aadhaar.  Callers establish who they are through
one of four lightweight methods, each producing a trust tier that
downstream services may use to prioritise assistance.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from echoaid.models.enums import TrustLevel, VerificationMethod


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SelfDeclaration(_Payload):
    # Emptiness is checked by the validator so it can report which
    # fields are missing rather than failing schema validation.
    name: str = ""
    age: int | None = None
    location: str | None = None
    situation: str = ""
    needs_description: str = Field(default="", alias="needsDescription")
    consent_to_help: bool = Field(default=False, alias="consentToHelp")


class ReferredUser(_Payload):
    name: str
    situation: str
    needs_description: str = Field(alias="needsDescription")


class CommunityReferral(_Payload):
    referrer_name: str = Field(alias="referrerName")
    referrer_contact: str = Field(alias="referrerContact")
    referrer_organization: str | None = Field(default=None, alias="referrerOrganization")
    user_details: ReferredUser = Field(alias="userDetails")
    relationship_to_user: str = Field(alias="relationshipToUser")


class VoiceConsent(_Payload):
    consent_text: str = Field(alias="consentText")
    audio_url: str | None = Field(default=None, alias="audioUrl")
    consent_type: str = Field(alias="consentType")
    timestamp: datetime


class DocumentAlternative(_Payload):
    document_type: str = Field(alias="documentType")
    document_number: str | None = Field(default=None, alias="documentNumber")
    issuing_authority: str | None = Field(default=None, alias="issuingAuthority")
    has_physical_document: bool = Field(alias="hasPhysicalDocument")
    can_provide_details: bool = Field(default=False, alias="canProvideDetails")


PAYLOAD_TYPES: dict[VerificationMethod, type[_Payload]] = {
    VerificationMethod.SELF_DECLARATION: SelfDeclaration,
    VerificationMethod.COMMUNITY_REFERRAL: CommunityReferral,
    VerificationMethod.VOICE_CONSENT: VoiceConsent,
    VerificationMethod.DOCUMENT_ALTERNATIVE: DocumentAlternative,
}


class VerificationResult(BaseModel):
    success: bool
    message: str
    verification_id: str | None = None
    method: VerificationMethod | None = None
    trust_level: TrustLevel = TrustLevel.NONE
    # Shallow-merged into the session's user profile.
    profile_update: dict[str, Any] = Field(default_factory=dict)
    required_fields: list[str] | None = None
    alternative_methods: list[str] | None = None
    record: dict[str, Any] | None = None


class VerificationStatus(BaseModel):
    verified: bool
    method: VerificationMethod | None = None
    trust_level: TrustLevel = TrustLevel.NONE
    verified_at: datetime | None = None

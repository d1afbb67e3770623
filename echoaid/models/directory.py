"""Reference data: service providers, welfare schemes and helplines.

These records are read-only from the routing engine's point of view.
They are loaded by the seed module or by administrators directly into
the document store.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from echoaid.models.enums import Coverage, ProviderType
from echoaid.models.session import Coordinates


class LocalizedText(BaseModel):
    """Text in English and Hindi, with optional regional translations."""

    en: str
    hi: str
    ta: str | None = None
    bn: str | None = None
    te: str | None = None
    mr: str | None = None
    kn: str | None = None

    def for_language(self, language: str) -> str:
        value = getattr(self, language, None)
        return value or self.hi


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------


class ProviderLocation(BaseModel):
    state: str
    district: str
    address: str = ""
    coordinates: Coordinates | None = None


class ProviderContact(BaseModel):
    phone: str
    whatsapp: str | None = None
    email: str | None = None
    website: str | None = None
    contact_person: str | None = None


class ProviderAvailability(BaseModel):
    hours: str = "business_hours"  # "24x7", "business_hours" or free text
    days: list[str] = Field(default_factory=list)
    emergency_24x7: bool = False


class ProviderCapacity(BaseModel):
    # current_load <= max_capacity is assumed, never enforced.
    current_load: int = 0
    max_capacity: int = 0
    wait_time: int | None = None  # minutes

    @property
    def has_room(self) -> bool:
        return self.current_load < self.max_capacity

    @property
    def headroom(self) -> float:
        """Free capacity as a fraction of the maximum; 0 when unset."""
        if self.max_capacity <= 0:
            return 0.0
        return (self.max_capacity - self.current_load) / self.max_capacity


class ProviderVerification(BaseModel):
    is_verified: bool = False
    verified_by: str | None = None
    verification_date: datetime | None = None
    rating: float = Field(default=0.0, ge=0.0, le=5.0)


class Provider(BaseModel):
    provider_id: str
    name: str
    type: ProviderType
    services: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    location: ProviderLocation
    contact: ProviderContact
    availability: ProviderAvailability = Field(default_factory=ProviderAvailability)
    capacity: ProviderCapacity = Field(default_factory=ProviderCapacity)
    verification: ProviderVerification = Field(default_factory=ProviderVerification)
    specializations: list[str] = Field(default_factory=list)
    is_active: bool = True

    @property
    def ranking_score(self) -> float:
        return self.verification.rating * 0.7 + self.capacity.headroom * 0.3


# ---------------------------------------------------------------------------
# Welfare schemes
# ---------------------------------------------------------------------------


class ApplicationProcess(BaseModel):
    steps: list[str] = Field(default_factory=list)
    documents_required: list[str] = Field(default_factory=list)
    alternative_verification: list[str] = Field(default_factory=list)


class SchemeOffice(BaseModel):
    location: str
    address: str
    phone: str
    coordinates: Coordinates | None = None


class SchemeContactInfo(BaseModel):
    helpline: str | None = None
    website: str | None = None
    offices: list[SchemeOffice] = Field(default_factory=list)


class Scheme(BaseModel):
    scheme_id: str
    name: LocalizedText
    description: LocalizedText
    category: str
    eligibility: list[str] = Field(default_factory=list)
    target_groups: list[str] = Field(default_factory=list)
    application_process: ApplicationProcess = Field(default_factory=ApplicationProcess)
    contact_info: SchemeContactInfo = Field(default_factory=SchemeContactInfo)
    is_active: bool = True
    last_updated: datetime = Field(default_factory=lambda: datetime.now(UTC))


# ---------------------------------------------------------------------------
# Emergency contacts
# ---------------------------------------------------------------------------


class ContactLocation(BaseModel):
    state: str | None = None
    district: str | None = None


class EmergencyContact(BaseModel):
    contact_id: str
    name: LocalizedText
    category: str
    phone: str
    short_code: str | None = None
    coverage: Coverage = Coverage.NATIONAL
    location: ContactLocation | None = None
    languages: list[str] = Field(default_factory=list)
    availability: str = "24x7"
    description: LocalizedText
    priority: int = Field(default=1, ge=1)  # 1 is highest
    is_active: bool = True

"""Shared fixtures: an in-memory store, repositories and record builders."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest

from echoaid.models.directory import (
    EmergencyContact,
    LocalizedText,
    Provider,
    ProviderAvailability,
    ProviderCapacity,
    ProviderContact,
    ProviderLocation,
    ProviderVerification,
    Scheme,
)
from echoaid.models.enums import Coverage, ProviderType
from echoaid.services.call_log import CallLogRepository
from echoaid.services.directory import DirectoryService
from echoaid.services.localization import MessageCatalog
from echoaid.services.sessions import SessionRepository
from echoaid.services.store import InMemoryDocumentStore

# 11:30 in Asia/Kolkata, inside business hours.
FIXED_NOW = datetime(2024, 5, 1, 6, 0, tzinfo=UTC)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def sessions(store: InMemoryDocumentStore) -> SessionRepository:
    return SessionRepository(store)


@pytest.fixture
def call_logs(store: InMemoryDocumentStore) -> CallLogRepository:
    return CallLogRepository(store)


@pytest.fixture
def directory(store: InMemoryDocumentStore) -> DirectoryService:
    return DirectoryService(store)


@pytest.fixture
def messages() -> MessageCatalog:
    return MessageCatalog()


@pytest.fixture
def make_provider():
    """Build a verified, active provider with overridable fields."""

    def _make(
        provider_id: str = "prov_1",
        *,
        services: list[str] | None = None,
        state: str = "Delhi",
        district: str = "Central Delhi",
        rating: float = 4.0,
        current_load: int = 0,
        max_capacity: int = 10,
        hours: str = "business_hours",
        emergency_24x7: bool = False,
        is_verified: bool = True,
        is_active: bool = True,
        specializations: list[str] | None = None,
        **overrides: Any,
    ) -> Provider:
        return Provider(
            provider_id=provider_id,
            name=overrides.pop("name", f"Provider {provider_id}"),
            type=overrides.pop("type", ProviderType.NGO),
            services=services if services is not None else ["employment"],
            languages=["hi", "en"],
            location=ProviderLocation(state=state, district=district, address="Somewhere"),
            contact=ProviderContact(phone=overrides.pop("phone", "+919800000000")),
            availability=ProviderAvailability(hours=hours, emergency_24x7=emergency_24x7),
            capacity=ProviderCapacity(current_load=current_load, max_capacity=max_capacity, wait_time=15),
            verification=ProviderVerification(is_verified=is_verified, rating=rating),
            specializations=specializations or [],
            is_active=is_active,
            **overrides,
        )

    return _make


@pytest.fixture
def make_scheme():
    def _make(scheme_id: str = "scheme_1", *, category: str = "employment", **overrides: Any) -> Scheme:
        return Scheme(
            scheme_id=scheme_id,
            name=LocalizedText(en=f"Scheme {scheme_id}", hi=f"योजना {scheme_id}"),
            description=LocalizedText(en="A scheme", hi="एक योजना"),
            category=category,
            **overrides,
        )

    return _make


@pytest.fixture
def make_contact():
    def _make(
        contact_id: str = "ec_1",
        *,
        category: str = "general",
        phone: str = "112",
        priority: int = 1,
        coverage: Coverage = Coverage.NATIONAL,
        is_active: bool = True,
    ) -> EmergencyContact:
        return EmergencyContact(
            contact_id=contact_id,
            name=LocalizedText(en=f"Helpline {phone}", hi=f"हेल्पलाइन {phone}"),
            category=category,
            phone=phone,
            coverage=coverage,
            description=LocalizedText(en="Helpline", hi="हेल्पलाइन"),
            priority=priority,
            is_active=is_active,
        )

    return _make

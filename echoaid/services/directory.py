"""Read access to providers, welfare schemes and emergency contacts.

The routing engine only ever reads reference data; the ``add_*`` methods
exist for seeding and administration.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Final

import structlog

from echoaid.models.directory import EmergencyContact, Provider, Scheme
from echoaid.models.session import Location
from echoaid.services.store import EMERGENCY_CONTACTS, PROVIDERS, SCHEMES, DocumentStore

logger = structlog.get_logger(__name__)

MAX_PROVIDERS: Final[int] = 3
MAX_SCHEMES: Final[int] = 5
MAX_EMERGENCY_CONTACTS: Final[int] = 3


def filter_providers(
    providers: Iterable[Provider],
    services: Iterable[str],
    *,
    location: Location | None = None,
    user_category: str | None = None,
    emergency: bool = False,
) -> list[Provider]:
    """Keep verified, active providers offering any of *services*.

    A known location must match on both state and district; a known user
    category must appear in the provider's specializations.
    """
    wanted = set(services)
    matched: list[Provider] = []
    for provider in providers:
        if not (provider.verification.is_verified and provider.is_active):
            continue
        if wanted.isdisjoint(provider.services):
            continue
        if location is not None and (
            provider.location.state != location.state
            or provider.location.district != location.district
        ):
            continue
        if user_category and user_category not in provider.specializations:
            continue
        if emergency and not provider.availability.emergency_24x7:
            continue
        matched.append(provider)
    return matched


def rank_providers(providers: Iterable[Provider], limit: int = MAX_PROVIDERS) -> list[Provider]:
    """Order by ``rating*0.7 + headroom*0.3`` descending, ties in input order."""
    # sorted() is stable, so equal scores keep their original order.
    return sorted(providers, key=lambda p: p.ranking_score, reverse=True)[:limit]


def rank_emergency_contacts(
    contacts: Iterable[EmergencyContact],
    limit: int = MAX_EMERGENCY_CONTACTS,
) -> list[EmergencyContact]:
    """Priority ascending, then district > state > national."""
    return sorted(contacts, key=lambda c: (c.priority, -c.coverage.specificity))[:limit]


class DirectoryService:
    """Queries over the three reference tables."""

    __slots__ = ("_store",)

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    # -- providers ----------------------------------------------------------

    async def get_provider(self, provider_id: str) -> Provider | None:
        doc = await self._store.get(PROVIDERS, provider_id)
        return Provider.model_validate(doc) if doc is not None else None

    async def list_providers(self) -> list[Provider]:
        return [Provider.model_validate(doc) for doc in await self._store.find(PROVIDERS)]

    async def find_providers(
        self,
        services: Iterable[str],
        *,
        location: Location | None = None,
        user_category: str | None = None,
        emergency: bool = False,
        limit: int = MAX_PROVIDERS,
    ) -> list[Provider]:
        candidates = filter_providers(
            await self.list_providers(),
            services,
            location=location,
            user_category=user_category,
            emergency=emergency,
        )
        ranked = rank_providers(candidates, limit)
        logger.debug(
            "directory.providers_ranked",
            candidates=len(candidates),
            returned=[p.provider_id for p in ranked],
        )
        return ranked

    # -- schemes ------------------------------------------------------------

    async def find_schemes(self, category: str, limit: int | None = MAX_SCHEMES) -> list[Scheme]:
        docs = await self._store.find(SCHEMES, category=category, is_active=True)
        return [Scheme.model_validate(doc) for doc in docs[:limit]]

    # -- emergency contacts ---------------------------------------------------

    async def find_emergency_contacts(
        self,
        category: str,
        limit: int = MAX_EMERGENCY_CONTACTS,
    ) -> list[EmergencyContact]:
        docs = await self._store.find(EMERGENCY_CONTACTS, category=category, is_active=True)
        return rank_emergency_contacts((EmergencyContact.model_validate(d) for d in docs), limit)

    # -- administration -------------------------------------------------------

    async def add_provider(self, provider: Provider) -> None:
        await self._store.insert(PROVIDERS, provider.provider_id, provider.model_dump(mode="json"))

    async def add_scheme(self, scheme: Scheme) -> None:
        await self._store.insert(SCHEMES, scheme.scheme_id, scheme.model_dump(mode="json"))

    async def add_emergency_contact(self, contact: EmergencyContact) -> None:
        await self._store.insert(
            EMERGENCY_CONTACTS, contact.contact_id, contact.model_dump(mode="json"),
        )
